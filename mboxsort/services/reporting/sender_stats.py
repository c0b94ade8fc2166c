"""Sender statistics over decoded messages."""

from typing import Dict, Iterable, List, Tuple

from mboxsort.models.message import Message


def sender_counts(messages: Iterable[Message]) -> List[Tuple[str, int]]:
    """
    Count messages per sender address.

    Returns:
        (address, count) pairs by descending count; equal counts keep the
        order in which the senders first appeared. Messages without a
        sender address are not counted.
    """
    counts: Dict[str, int] = {}
    for message in messages:
        if message.sender_address:
            counts[message.sender_address] = counts.get(message.sender_address, 0) + 1
    return sorted(counts.items(), key=lambda item: -item[1])


def top_senders(messages: Iterable[Message], limit: int = 10) -> List[Tuple[str, int]]:
    return sender_counts(messages)[:limit]
