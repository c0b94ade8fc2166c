"""Decoding of raw mbox frames into Message records."""

import io
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional, Sequence

from mboxsort.errors import DecodeError, MalformedHeaderError
from mboxsort.models.message import Header, Message
from mboxsort.models.raw_frame import RawFrame
from mboxsort.utils.address_utils import extract_address
from mboxsort.utils.message_id import normalize_message_id, parse_message_id_list
from mboxsort.utils.unicode_utils import decode_email_header
from .header_parser import get_all_headers, get_header, parse_headers, split_header_block
from .mime_decoder import DEFAULT_FALLBACK_CHARSET, DEFAULT_MAX_DEPTH, decode_part

ESCAPED_FROM_PATTERN = re.compile(rb"^>+From ")

# Headers consulted, in order, for the sender address
SENDER_HEADERS = ("From", "Return-Path", "Sender")


def unescape_from_lines(body: bytes) -> bytes:
    """Remove one '>' from every ``>+From `` line (mboxrd quoting)."""
    if b">From " not in body:
        return body
    lines = []
    for line in io.BytesIO(body):
        if ESCAPED_FROM_PATTERN.match(line):
            line = line[1:]
        lines.append(line)
    return b"".join(lines)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an RFC 5322 Date value.

    Returns:
        Timezone-aware datetime (naive values are taken as UTC), or None if
        the value is missing or unparsable
    """
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError, OverflowError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _normalized_message_id(value: Optional[str]) -> Optional[str]:
    if not value or not value.strip():
        return None
    try:
        return normalize_message_id(value)
    except ValueError:
        # Malformed Message-ID, keep as-is
        return value.strip()


def _sender_address(headers: Sequence[Header], envelope_sender: str) -> str:
    for name in SENDER_HEADERS:
        address = extract_address(get_header(headers, name))
        if "@" in address:
            return address.lower()
    if "@" in envelope_sender:
        return envelope_sender.lower()
    return ""


def build_message(
    raw_headers: bytes,
    raw_body: bytes,
    source_offset: int = 0,
    *,
    envelope: str = "",
    fallback_charset: str = DEFAULT_FALLBACK_CHARSET,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Message:
    """
    Build a Message from its raw header block and body.

    Args:
        raw_headers: Header block bytes (without the envelope line)
        raw_body: Body bytes following the blank separator line
        source_offset: Byte offset of the frame in the archive
        envelope: Envelope line without ``From ``
        fallback_charset: Charset for text parts with a missing or unknown charset
        max_depth: Maximum multipart nesting depth

    Returns:
        Fully decoded Message

    Raises:
        DecodeError: If the header block or any body part cannot be decoded
    """
    headers = parse_headers(raw_headers)
    if not headers:
        raise MalformedHeaderError("Empty header block")

    warnings: List[str] = []
    top = decode_part(
        headers,
        raw_body,
        fallback_charset=fallback_charset,
        max_depth=max_depth,
        warnings=warnings,
    )

    date_value = get_header(headers, "Date")
    date = parse_date(date_value)
    if date is None:
        warnings.append(f"Unparsable Date header: {date_value!r}" if date_value else "Missing Date header")

    reply_ids = parse_message_id_list(get_header(headers, "In-Reply-To"))
    envelope_tokens = envelope.split()

    return Message(
        source_offset=source_offset,
        headers=headers,
        body_parts=top.parts if top.is_multipart else (top,),
        content_type=top.content_type,
        subject=decode_email_header(get_header(headers, "Subject", "")),
        sender=decode_email_header(get_header(headers, "From", "")),
        sender_address=_sender_address(headers, envelope_tokens[0] if envelope_tokens else ""),
        to=decode_email_header(get_header(headers, "To", "")),
        date=date,
        message_id=_normalized_message_id(get_header(headers, "Message-ID")),
        in_reply_to=reply_ids[0] if reply_ids else None,
        references=tuple(parse_message_id_list(" ".join(get_all_headers(headers, "References")))),
        envelope=envelope,
        warnings=tuple(warnings),
    )


class MessageDecoder:
    """Decode RawFrame instances into Message records."""

    def __init__(
        self,
        fallback_charset: str = DEFAULT_FALLBACK_CHARSET,
        unescape_from: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """
        Initialize decoder.

        Args:
            fallback_charset: Charset for text parts with a missing or unknown charset
            unescape_from: Strip one '>' from ``>From `` body lines (mboxrd)
            max_depth: Maximum multipart nesting depth
        """
        self.fallback_charset = fallback_charset
        self.unescape_from = unescape_from
        self.max_depth = max_depth

    @classmethod
    def from_config(cls, config) -> "MessageDecoder":
        """Create a decoder from a DecoderConfig."""
        return cls(
            fallback_charset=config.fallback_charset,
            unescape_from=config.unescape_from,
            max_depth=config.max_depth,
        )

    def decode(self, frame: RawFrame) -> Message:
        """
        Decode one frame.

        Raises:
            DecodeError: With ``offset`` set to the frame offset
        """
        raw_headers, raw_body = split_header_block(frame.content())
        if self.unescape_from:
            raw_body = unescape_from_lines(raw_body)

        try:
            return build_message(
                raw_headers,
                raw_body,
                frame.offset,
                envelope=frame.envelope,
                fallback_charset=self.fallback_charset,
                max_depth=self.max_depth,
            )
        except DecodeError as e:
            e.offset = frame.offset
            raise
