"""Bucket data model."""

from dataclasses import dataclass
from typing import Tuple

from .criteria import Criterion

UNKNOWN_SENDER = "(unknown)"
UNMATCHED_SUBJECT = "(unmatched)"
NO_SUBJECT = "(no subject)"
UNDATED = "undated"

PLACEHOLDER_LABELS = frozenset({UNKNOWN_SENDER, UNMATCHED_SUBJECT, NO_SUBJECT, UNDATED})


@dataclass(frozen=True)
class Bucket:
    """
    Named output group referencing messages by id.

    Attributes:
        name: ``<criterion>:<label>``, e.g. ``sender:example.com``
        criterion: Criterion of the rule that produced the bucket
        message_ids: Message ids (source offsets) in sorted order
    """

    name: str
    criterion: Criterion
    message_ids: Tuple[int, ...] = ()

    def __len__(self) -> int:
        return len(self.message_ids)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self.message_ids

    @property
    def label(self) -> str:
        return self.name.partition(":")[2]

    @property
    def is_placeholder(self) -> bool:
        """True for the catch-all buckets that hold messages lacking the grouped attribute."""
        return self.label in PLACEHOLDER_LABELS


def bucket_name(criterion: Criterion, label: str) -> str:
    return f"{criterion.value}:{label}"
