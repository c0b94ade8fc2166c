"""Header block splitting, unfolding and field parsing."""

import io
import re
from typing import List, Optional, Sequence, Tuple

from mboxsort.errors import MalformedHeaderError
from mboxsort.models.message import Header

# Printable US-ASCII except colon (RFC 5322 field-name)
FIELD_NAME_PATTERN = re.compile(r"^[!-9;-~]+$")


def split_header_block(data: bytes) -> Tuple[bytes, bytes]:
    """
    Split entity bytes at the first blank line.

    Args:
        data: Header block followed by an optional body

    Returns:
        Tuple of (raw header bytes, raw body bytes); the blank separator line
        belongs to neither. Without a blank line the whole input is headers.
    """
    position = 0
    for line in io.BytesIO(data):
        if not line.strip(b"\r\n"):
            return data[:position], data[position + len(line) :]
        position += len(line)
    return data, b""


def _decode_line(raw_line: bytes) -> str:
    try:
        return raw_line.decode("utf-8")
    except UnicodeDecodeError:
        return raw_line.decode("latin-1")


def parse_headers(raw_headers: bytes) -> Tuple[Header, ...]:
    """
    Parse a header block into ordered fields.

    Continuation lines (leading space or tab) are unfolded onto the previous
    field by removing the line break. Duplicate fields are preserved in order.

    Raises:
        MalformedHeaderError: On a line without a colon, an invalid field
            name, or a continuation line before the first field
    """
    fields: List[List[str]] = []

    for raw_line in io.BytesIO(raw_headers):
        line = _decode_line(raw_line).rstrip("\r\n")
        if not line:
            continue

        if line[0] in " \t":
            if not fields:
                raise MalformedHeaderError("Continuation line before the first header field")
            fields[-1][1] += line
            continue

        name, separator, value = line.partition(":")
        name = name.rstrip(" \t")
        if not separator or not FIELD_NAME_PATTERN.match(name):
            raise MalformedHeaderError(f"Malformed header line: {line[:60]!r}")
        fields.append([name, value])

    return tuple(Header(name=name, value=value.strip()) for name, value in fields)


def get_header(headers: Sequence[Header], name: str, default: Optional[str] = None) -> Optional[str]:
    """Return the first value of header ``name`` (case-insensitive)."""
    for header in headers:
        if header.matches(name):
            return header.value
    return default


def get_all_headers(headers: Sequence[Header], name: str) -> List[str]:
    return [header.value for header in headers if header.matches(name)]
