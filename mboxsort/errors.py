"""Exception hierarchy for archive splitting, decoding and classification."""

from typing import Optional

from mboxsort.models.diagnostic import ErrorKind


class MboxSortError(Exception):
    """Base exception for mboxsort errors."""

    pass


class ConfigurationError(MboxSortError):
    """Raised when the classification or application configuration is invalid."""

    pass


class FormatError(MboxSortError):
    """Raised when the archive stream does not start with an mbox envelope line."""

    def __init__(self, message: str, offset: int = 0):
        super().__init__(message)
        self.offset = offset


class DecodeError(MboxSortError):
    """
    Raised when a single message frame cannot be decoded.

    Attributes:
        kind: Diagnostic category of the failure
        offset: Byte offset of the offending frame (set by the decoder)
    """

    kind = ErrorKind.DECODE_ERROR

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.offset = offset


class MalformedHeaderError(DecodeError):
    """Raised when a header block cannot be parsed."""

    kind = ErrorKind.MALFORMED_HEADER


class MalformedBoundaryError(DecodeError):
    """Raised when a multipart body has a missing or broken boundary."""

    kind = ErrorKind.MALFORMED_BOUNDARY


class UnknownTransferEncodingError(DecodeError):
    """Raised when Content-Transfer-Encoding names an unsupported encoding."""

    kind = ErrorKind.UNKNOWN_TRANSFER_ENCODING


class TruncatedPayloadError(DecodeError):
    """Raised when an encoded payload ends before it is complete."""

    kind = ErrorKind.TRUNCATED_PAYLOAD


class MalformedPayloadError(DecodeError):
    """Raised when an encoded payload contains data outside its alphabet."""

    kind = ErrorKind.MALFORMED_PAYLOAD
