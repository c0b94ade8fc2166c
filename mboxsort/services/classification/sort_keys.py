"""Sort keys and stable ordering of messages."""

from datetime import timezone
from typing import Iterable, List, Optional, Tuple

from mboxsort.models.bucket import UNDATED
from mboxsort.models.criteria import Criterion, DateGranularity
from mboxsort.models.message import Message
from .thread_index import ThreadIndex

SortKey = Tuple

DATE_LABEL_FORMATS = {
    DateGranularity.DAY: "%Y-%m-%d",
    DateGranularity.MONTH: "%Y-%m",
    DateGranularity.YEAR: "%Y",
}


def date_label(message: Message, granularity: DateGranularity) -> str:
    """Return the UTC date bucket label of a message, or ``undated``."""
    if message.date is None:
        return UNDATED
    return message.date.astimezone(timezone.utc).strftime(DATE_LABEL_FORMATS[granularity])


def sort_key(message: Message, criterion: Criterion, threads: Optional[ThreadIndex] = None) -> SortKey:
    """
    Compute the sort key of a message for one criterion.

    Messages lacking the attribute (no date, no sender address) sort after
    those that have it.

    Raises:
        ValueError: If sorting by thread without a ThreadIndex
    """
    if criterion is Criterion.DATE:
        if message.date is None:
            return (1,)
        return (0, message.date.astimezone(timezone.utc))
    if criterion is Criterion.SENDER:
        return (0, message.sender_address) if message.sender_address else (1,)
    if criterion is Criterion.SUBJECT:
        return (message.normalized_subject,)
    if criterion is Criterion.THREAD:
        if threads is None:
            raise ValueError("Sorting by thread requires a ThreadIndex")
        return (threads.rank_of(message),)
    raise ValueError(f"Unsupported sort criterion: {criterion}")


def sort_messages(
    messages: Iterable[Message],
    criterion: Criterion,
    threads: Optional[ThreadIndex] = None,
) -> List[Message]:
    """Stable sort: messages with equal keys keep archive (source offset) order."""
    in_archive_order = sorted(messages, key=lambda message: message.source_offset)
    return sorted(in_archive_order, key=lambda message: sort_key(message, criterion, threads))
