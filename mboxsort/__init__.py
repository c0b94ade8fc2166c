"""mboxsort: split, decode and sort MBOX mailbox archives."""

__version__ = "0.1.0"
