"""Diagnostic records for frames that could not be processed."""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple


class ErrorKind(Enum):
    """Category of a processing failure."""

    FORMAT_ERROR = "format_error"
    MALFORMED_HEADER = "malformed_header"
    MALFORMED_BOUNDARY = "malformed_boundary"
    UNKNOWN_TRANSFER_ENCODING = "unknown_transfer_encoding"
    TRUNCATED_PAYLOAD = "truncated_payload"
    MALFORMED_PAYLOAD = "malformed_payload"
    DECODE_ERROR = "decode_error"


@dataclass(frozen=True)
class Diagnostic:
    """
    One failure reported while processing an archive.

    Attributes:
        frame_offset: Byte offset of the frame (0 for stream-level problems)
        error_kind: Failure category
        message: Human-readable error description
    """

    frame_offset: int
    error_kind: ErrorKind
    message: str

    def as_tuple(self) -> Tuple[int, str, str]:
        return (self.frame_offset, self.error_kind.value, self.message)

    def to_dict(self) -> dict:
        return {
            "frame_offset": self.frame_offset,
            "error_kind": self.error_kind.value,
            "message": self.message,
        }


class DiagnosticsSink:
    """Thread-safe collector of diagnostics shared by the splitter and decode workers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: List[Diagnostic] = []

    def append(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._entries.append(diagnostic)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def snapshot(self) -> List[Diagnostic]:
        """
        Return the collected diagnostics ordered by frame offset.

        Entries sharing an offset keep the order in which they were appended.
        """
        with self._lock:
            entries = list(self._entries)
        return sorted(entries, key=lambda entry: entry.frame_offset)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
