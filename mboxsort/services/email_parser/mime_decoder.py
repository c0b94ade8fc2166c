"""MIME body decoding: transfer encodings, charsets and multipart splitting."""

import binascii
import io
from email.message import Message as HeaderView
from typing import List, Optional, Sequence, Tuple

from mboxsort.errors import (
    DecodeError,
    MalformedBoundaryError,
    MalformedPayloadError,
    TruncatedPayloadError,
    UnknownTransferEncodingError,
)
from mboxsort.models.message import BodyPart, Header
from mboxsort.utils.unicode_utils import is_text_charset
from .header_parser import get_header, parse_headers, split_header_block

DEFAULT_FALLBACK_CHARSET = "latin-1"
DEFAULT_MAX_DEPTH = 32

IDENTITY_ENCODINGS = frozenset({"7bit", "8bit", "binary"})
SUPPORTED_TRANSFER_ENCODINGS = IDENTITY_ENCODINGS | {"base64", "quoted-printable"}


def decode_transfer_encoding(payload: bytes, encoding: str) -> bytes:
    """
    Undo a Content-Transfer-Encoding.

    Args:
        payload: Encoded body bytes
        encoding: Lower-case transfer encoding name

    Returns:
        Decoded bytes

    Raises:
        UnknownTransferEncodingError: For encodings other than 7bit, 8bit,
            binary, base64 and quoted-printable
        TruncatedPayloadError: For base64 data cut short
        MalformedPayloadError: For base64 data with invalid characters or padding
    """
    if encoding in IDENTITY_ENCODINGS:
        return payload
    if encoding == "base64":
        return _decode_base64(payload)
    if encoding == "quoted-printable":
        return binascii.a2b_qp(payload)
    raise UnknownTransferEncodingError(f"Unknown transfer encoding: {encoding!r}")


def _decode_base64(payload: bytes) -> bytes:
    compact = b"".join(payload.split())
    if len(compact) % 4:
        raise TruncatedPayloadError(
            f"Truncated base64 payload: {len(compact)} characters is not a multiple of 4"
        )
    try:
        return binascii.a2b_base64(compact, strict_mode=True)
    except binascii.Error as e:
        raise MalformedPayloadError(f"Malformed base64 payload: {e}") from e


def resolve_charset(declared: Optional[str], fallback: str = DEFAULT_FALLBACK_CHARSET) -> Tuple[str, bool]:
    """
    Pick the charset used to decode a text part.

    Returns:
        Tuple of (charset, used_fallback); the fallback is used when the
        declared charset is missing, malformed or not a text codec
    """
    if not is_text_charset(declared):
        return fallback, True
    return declared.lower(), False


def split_multipart(body: bytes, boundary: str) -> List[bytes]:
    """
    Split a multipart body on its boundary.

    The preamble before the first delimiter and the epilogue after the
    closing delimiter are dropped. The line break preceding a delimiter
    belongs to the delimiter, not to the part.

    Raises:
        MalformedBoundaryError: If the boundary cannot be encoded, the first
            delimiter is missing, or the closing delimiter is missing
    """
    try:
        delimiter = b"--" + boundary.encode("ascii")
    except UnicodeEncodeError as e:
        raise MalformedBoundaryError(f"Boundary is not ASCII: {boundary!r}") from e

    parts: List[bytes] = []
    current: Optional[List[bytes]] = None
    closed = False

    for line in io.BytesIO(body):
        stripped = line.rstrip(b"\r\n")
        if stripped.startswith(delimiter):
            rest = stripped[len(delimiter) :]
            if rest.startswith(b"--") and not rest[2:].strip():
                if current is not None:
                    parts.append(_join_part(current))
                closed = True
                break
            if not rest.strip():
                if current is not None:
                    parts.append(_join_part(current))
                current = []
                continue
        if current is not None:
            current.append(line)

    if not parts and current is None:
        raise MalformedBoundaryError(f"Multipart boundary {boundary!r} not found in body")
    if not closed:
        raise MalformedBoundaryError(f"Closing boundary '--{boundary}--' not found; body is truncated")
    return parts


def _join_part(lines: List[bytes]) -> bytes:
    data = b"".join(lines)
    if data.endswith(b"\r\n"):
        return data[:-2]
    if data.endswith(b"\n"):
        return data[:-1]
    return data


def _header_view(headers: Sequence[Header], default_type: str) -> HeaderView:
    """Expose Content-Type/Content-Disposition parameters through email.message's parser."""
    view = HeaderView()
    view.set_default_type(default_type)
    for header in headers:
        if header.name.lower() in ("content-type", "content-disposition") and header.name not in view:
            view[header.name] = header.value
    return view


def decode_part(
    headers: Sequence[Header],
    raw_body: bytes,
    *,
    fallback_charset: str = DEFAULT_FALLBACK_CHARSET,
    max_depth: int = DEFAULT_MAX_DEPTH,
    default_type: str = "text/plain",
    warnings: Optional[List[str]] = None,
    _depth: int = 0,
    _path: str = "1",
) -> BodyPart:
    """
    Decode one MIME entity, recursing into multipart containers.

    Args:
        headers: Parsed entity headers
        raw_body: Entity body as it appears in the message
        fallback_charset: Charset for text parts with a missing or unknown charset
        max_depth: Maximum multipart nesting depth
        default_type: Content type assumed when Content-Type is absent
        warnings: List that receives non-fatal decoding flags

    Returns:
        Decoded BodyPart

    Raises:
        DecodeError: Subclass describing the first problem found
    """
    view = _header_view(headers, default_type)
    content_type = view.get_content_type()
    encoding = (get_header(headers, "Content-Transfer-Encoding") or "7bit").strip().lower()
    disposition = view.get_content_disposition()
    filename = view.get_filename()

    if encoding not in SUPPORTED_TRANSFER_ENCODINGS:
        raise UnknownTransferEncodingError(f"Unknown transfer encoding {encoding!r} in part {_path}")

    if view.get_content_maintype() == "multipart":
        if encoding not in IDENTITY_ENCODINGS:
            raise DecodeError(f"Multipart part {_path} may not use transfer encoding {encoding!r}")
        if _depth >= max_depth:
            raise MalformedBoundaryError(f"Multipart nesting deeper than {max_depth} levels at part {_path}")
        boundary = view.get_boundary()
        if not boundary:
            raise MalformedBoundaryError(f"Multipart part {_path} has no boundary parameter")

        child_default = "message/rfc822" if content_type == "multipart/digest" else "text/plain"
        children = []
        for index, chunk in enumerate(split_multipart(raw_body, boundary), 1):
            child_raw_headers, child_body = split_header_block(chunk)
            children.append(
                decode_part(
                    parse_headers(child_raw_headers),
                    child_body,
                    fallback_charset=fallback_charset,
                    max_depth=max_depth,
                    default_type=child_default,
                    warnings=warnings,
                    _depth=_depth + 1,
                    _path=f"{_path}.{index}",
                )
            )
        return BodyPart(
            content_type=content_type,
            transfer_encoding=encoding,
            headers=tuple(headers),
            parts=tuple(children),
            disposition=disposition,
            filename=filename,
        )

    payload = decode_transfer_encoding(raw_body, encoding)

    charset = None
    charset_fallback = False
    if view.get_content_maintype() == "text":
        declared = view.get_content_charset()
        charset, charset_fallback = resolve_charset(declared, fallback_charset)
        if charset_fallback and warnings is not None:
            reason = f"unknown charset {declared!r}" if declared else "no charset"
            warnings.append(f"Part {_path} ({content_type}) has {reason}; decoded as {charset}")

    return BodyPart(
        content_type=content_type,
        transfer_encoding=encoding,
        payload=payload,
        charset=charset,
        charset_fallback=charset_fallback,
        headers=tuple(headers),
        disposition=disposition,
        filename=filename,
    )
