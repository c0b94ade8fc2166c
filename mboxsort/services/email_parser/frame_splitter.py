"""Splitting of mbox byte streams into raw message frames."""

import io
import logging
import re
from typing import BinaryIO, Iterator, List, Optional

from mboxsort.errors import FormatError
from mboxsort.models.diagnostic import Diagnostic, DiagnosticsSink, ErrorKind
from mboxsort.models.raw_frame import RawFrame

logger = logging.getLogger(__name__)

# "From <sender> <ctime timestamp>", e.g. "From moo@example.com Thu Jan  1 00:00:00 1970".
# Some writers put a numeric or named zone before the year.
ENVELOPE_PATTERN = re.compile(
    rb"^From \S+ +"
    rb"(?:[A-Za-z]{3},? +)?"
    rb"[A-Za-z]{3} +\d{1,2} +"
    rb"\d{1,2}:\d{2}(?::\d{2})? +"
    rb"(?:[A-Za-z]{1,5} +|[+-]\d{4} +)?"
    rb"\d{4}"
)


def is_envelope_line(line: bytes) -> bool:
    """Return True if ``line`` is a syntactically valid mbox envelope line."""
    return ENVELOPE_PATTERN.match(line) is not None


def is_blank_line(line: bytes) -> bool:
    return line in (b"\n", b"\r\n")


class FrameSplitter:
    """
    Lazy, restartable sequence of RawFrame read from an mbox stream.

    A frame starts at an envelope line that begins the stream or directly
    follows a blank line. Escaped ``>From `` lines and ``From `` lines
    without a timestamp are ordinary body lines. Lines are passed through
    with their original LF or CRLF terminators, so for an archive that
    starts with an envelope line the frames concatenate back to the input.
    """

    def __init__(
        self,
        stream: BinaryIO,
        diagnostics: Optional[DiagnosticsSink] = None,
        strict: bool = False,
    ):
        """
        Initialize the splitter.

        Args:
            stream: Readable binary stream positioned at the start of the archive
            diagnostics: Optional sink for stream-level format warnings
            strict: Raise FormatError instead of skipping a leading non-envelope preamble
        """
        self._stream = stream
        self._start = stream.tell() if stream.seekable() else None
        self._iterated = False
        self.diagnostics = diagnostics
        self.strict = strict
        self.skipped_bytes = 0

    @classmethod
    def from_bytes(cls, data: bytes, **kwargs) -> "FrameSplitter":
        return cls(io.BytesIO(data), **kwargs)

    def __iter__(self) -> Iterator[RawFrame]:
        self._rewind()
        return self._frames()

    def _rewind(self) -> None:
        if self._start is not None:
            self._stream.seek(self._start)
        elif self._iterated:
            raise ValueError("Stream is not seekable; frames can only be iterated once")
        self._iterated = True
        self.skipped_bytes = 0

    def _frames(self) -> Iterator[RawFrame]:
        offset = 0
        frame_start: Optional[int] = None
        lines: List[bytes] = []
        previous_blank = True

        for line in iter(self._stream.readline, b""):
            if frame_start is None:
                # Searching for the first envelope line; the blank-line rule does not apply yet
                if is_envelope_line(line):
                    if self.skipped_bytes:
                        self._report_preamble()
                    frame_start = offset
                    lines = [line]
                else:
                    if offset == 0 and self.strict:
                        raise FormatError("Archive does not start with a 'From ' envelope line", offset=0)
                    self.skipped_bytes += len(line)
            elif previous_blank and is_envelope_line(line):
                yield RawFrame(offset=frame_start, data=b"".join(lines), separated=True)
                frame_start = offset
                lines = [line]
            else:
                lines.append(line)

            previous_blank = is_blank_line(line)
            offset += len(line)

        if frame_start is not None:
            yield RawFrame(offset=frame_start, data=b"".join(lines))
        elif self.skipped_bytes:
            self._report(f"No 'From ' envelope line found in {self.skipped_bytes} bytes; archive yields no messages")

    def _report_preamble(self) -> None:
        self._report(f"Skipped {self.skipped_bytes} bytes before the first 'From ' envelope line")

    def _report(self, message: str) -> None:
        logger.warning(message)
        if self.diagnostics is not None:
            self.diagnostics.append(Diagnostic(frame_offset=0, error_kind=ErrorKind.FORMAT_ERROR, message=message))
