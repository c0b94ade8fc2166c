"""Shared fixtures for building mbox archives in tests."""

from typing import Iterable, Optional

import pytest

from mboxsort.models.raw_frame import RawFrame
from mboxsort.services.email_parser.message_decoder import MessageDecoder

ENVELOPE = b"From sender@example.com Thu Jan  1 00:00:00 1970\n"


def _make_message(
    subject: Optional[str] = "Hello",
    sender: Optional[str] = "Alice <alice@example.com>",
    date: Optional[str] = "Mon, 04 Mar 2024 10:00:00 +0000",
    message_id: Optional[str] = None,
    in_reply_to: Optional[str] = None,
    references: Optional[str] = None,
    body: str = "Hello world\n",
    extra_headers: Iterable[str] = (),
    envelope: bytes = ENVELOPE,
) -> bytes:
    lines = []
    if sender is not None:
        lines.append(f"From: {sender}")
    lines.append("To: Bob <bob@example.org>")
    if subject is not None:
        lines.append(f"Subject: {subject}")
    if date is not None:
        lines.append(f"Date: {date}")
    if message_id is not None:
        lines.append(f"Message-ID: {message_id}")
    if in_reply_to is not None:
        lines.append(f"In-Reply-To: {in_reply_to}")
    if references is not None:
        lines.append(f"References: {references}")
    lines.extend(extra_headers)
    return envelope + ("\n".join(lines) + "\n\n" + body).encode("utf-8")


def _build_archive(*messages: bytes) -> bytes:
    # A blank line separates consecutive messages
    return b"\n".join(messages)


@pytest.fixture
def make_message():
    """Factory for one raw message (envelope line included)."""
    return _make_message


@pytest.fixture
def build_archive():
    """Join raw messages into an mbox archive."""
    return _build_archive


@pytest.fixture
def decoder():
    return MessageDecoder()


@pytest.fixture
def decode(decoder):
    """Decode raw message bytes as a frame at the given offset."""

    def _decode(raw: bytes, offset: int = 0):
        return decoder.decode(RawFrame(offset=offset, data=raw))

    return _decode
