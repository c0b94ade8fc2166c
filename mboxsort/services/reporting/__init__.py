"""Report formatting and sender statistics."""

from .report_formatter import ReportFormatter
from .sender_stats import sender_counts, top_senders

__all__ = ["ReportFormatter", "sender_counts", "top_senders"]
