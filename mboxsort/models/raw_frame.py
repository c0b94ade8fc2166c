"""Raw message frame as delimited in an mbox archive."""

from dataclasses import dataclass
from typing import Tuple

ENVELOPE_PREFIX = b"From "


@dataclass(frozen=True)
class RawFrame:
    """
    Exact byte span of one candidate message.

    Attributes:
        offset: Byte position of the envelope line within the archive stream
        data: Frame bytes, envelope line and line terminators included
        separated: True when the last line of ``data`` is the blank line that
            precedes the next envelope rather than part of the message
    """

    offset: int
    data: bytes
    separated: bool = False

    def __post_init__(self):
        if self.offset < 0:
            raise ValueError("offset must be non-negative")

    def __len__(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        """Offset one past the last byte of the frame."""
        return self.offset + len(self.data)

    def split_envelope(self) -> Tuple[bytes, bytes]:
        """
        Split the frame into its envelope line and the message content.

        Returns:
            Tuple of (envelope line with terminator, remaining bytes); the
            envelope is empty if the frame does not start with ``From ``
        """
        if not self.data.startswith(ENVELOPE_PREFIX):
            return b"", self.data
        newline = self.data.find(b"\n")
        if newline == -1:
            return self.data, b""
        return self.data[: newline + 1], self.data[newline + 1 :]

    @property
    def envelope(self) -> str:
        """Envelope line without the ``From `` prefix and line terminator."""
        line, _ = self.split_envelope()
        return line[len(ENVELOPE_PREFIX) :].rstrip(b"\r\n").decode("latin-1")

    @property
    def envelope_sender(self) -> str:
        tokens = self.envelope.split()
        return tokens[0] if tokens else ""

    def content(self) -> bytes:
        """Message bytes: the frame without its envelope line and trailing separator line."""
        _, content = self.split_envelope()
        if self.separated:
            for separator in (b"\r\n", b"\n"):
                if content.endswith(separator):
                    return content[: -len(separator)]
        return content
