"""Unicode, header decoding and subject utilities."""

import re
from email.errors import HeaderParseError
from email.header import decode_header

REPLY_PREFIX_PATTERN = re.compile(r"^(?:\s*(?:re|fwd?|aw|sv)(?:\[\d+\])?\s*:)+", re.IGNORECASE)


def decode_email_header(header_value: str) -> str:
    """
    Decode RFC 2047 encoded-word header to Unicode string.

    Args:
        header_value: Raw header value (may be encoded)

    Returns:
        Decoded Unicode string; the raw value if the encoded words are broken

    Examples:
        >>> decode_email_header("=?UTF-8?B?5Lit5paH?=")
        '中文'
    """
    if not header_value:
        return ""

    try:
        chunks = decode_header(header_value)
    except HeaderParseError:
        return header_value

    decoded_parts = []
    for content, encoding in chunks:
        if isinstance(content, bytes):
            if encoding:
                try:
                    decoded_parts.append(content.decode(encoding))
                except (UnicodeDecodeError, LookupError):
                    # Fallback to UTF-8 with error replacement
                    decoded_parts.append(content.decode("utf-8", errors="replace"))
            else:
                # Unknown encoding, try ASCII then UTF-8
                try:
                    decoded_parts.append(content.decode("ascii"))
                except UnicodeDecodeError:
                    decoded_parts.append(content.decode("utf-8", errors="replace"))
        else:
            decoded_parts.append(str(content))

    return "".join(decoded_parts)


def truncate_subject(subject: str | None, max_length: int = 50) -> str:
    """
    Truncate subject to max_length with '...' if needed.

    Examples:
        >>> truncate_subject("Short subject")
        'Short subject'
        >>> truncate_subject("This is a very long subject that exceeds the maximum length", 30)
        'This is a very long subject...'
    """
    if not subject:
        return ""

    if len(subject) <= max_length:
        return subject

    return subject[: max_length - 3] + "..."


def normalize_subject(subject: str | None) -> str:
    """
    Reduce a subject to its thread key.

    Strips any run of reply/forward prefixes (``Re:``, ``Fwd:``, ``Fw:``,
    ``Aw:``, ``Sv:``, ``Re[2]:``), collapses whitespace and case-folds.

    Examples:
        >>> normalize_subject("Re: FWD:  Quarterly   Report")
        'quarterly report'
    """
    if not subject:
        return ""

    stripped = REPLY_PREFIX_PATTERN.sub("", subject)
    return " ".join(stripped.split()).casefold()


def is_text_charset(name: str | None) -> bool:
    """
    Check that ``name`` is a charset Python can decode bytes to text with.

    Bytes-to-bytes codecs such as ``hex`` or ``zlib`` are not text charsets.

    Examples:
        >>> is_text_charset("iso-8859-1")
        True
        >>> is_text_charset("hex")
        False
    """
    if not name:
        return False
    try:
        b"".decode(name)
    except (LookupError, ValueError):
        return False
    return True
