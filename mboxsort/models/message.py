"""Decoded email message data model."""

from dataclasses import dataclass
from datetime import datetime
from email.utils import getaddresses
from typing import Iterator, List, Optional, Tuple

from mboxsort.utils.address_utils import domain_of
from mboxsort.utils.unicode_utils import normalize_subject


@dataclass(frozen=True)
class Header:
    """One unfolded header field; the value is kept as it appeared (not RFC 2047 decoded)."""

    name: str
    value: str

    def matches(self, name: str) -> bool:
        return self.name.lower() == name.lower()


@dataclass(frozen=True)
class BodyPart:
    """
    One MIME entity of a decoded message.

    Attributes:
        content_type: Lower-case ``type/subtype``
        transfer_encoding: Lower-case Content-Transfer-Encoding of the entity
        payload: Decoded bytes (empty for multipart containers)
        charset: Effective charset for text parts, None otherwise
        charset_fallback: True if the charset was missing or unknown
        headers: Entity headers in order
        parts: Nested sub-parts of a multipart container, in order
        disposition: Lower-case Content-Disposition type, if any
        filename: Attachment filename, if any
    """

    content_type: str
    transfer_encoding: str = "7bit"
    payload: bytes = b""
    charset: Optional[str] = None
    charset_fallback: bool = False
    headers: Tuple[Header, ...] = ()
    parts: Tuple["BodyPart", ...] = ()
    disposition: Optional[str] = None
    filename: Optional[str] = None

    @property
    def maintype(self) -> str:
        return self.content_type.partition("/")[0]

    @property
    def is_multipart(self) -> bool:
        return self.maintype == "multipart"

    @property
    def is_text(self) -> bool:
        return self.maintype == "text"

    @property
    def is_attachment(self) -> bool:
        if self.is_multipart:
            return False
        return self.disposition == "attachment" or self.filename is not None

    @property
    def text(self) -> str:
        """Payload decoded with the effective charset (Latin-1 for non-text parts)."""
        return self.payload.decode(self.charset or "latin-1", errors="replace")

    def walk(self) -> Iterator["BodyPart"]:
        """Yield this part and all nested parts, depth-first."""
        yield self
        for part in self.parts:
            yield from part.walk()

    def leaves(self) -> Iterator["BodyPart"]:
        for part in self.walk():
            if not part.is_multipart:
                yield part


@dataclass(frozen=True)
class Message:
    """
    Immutable decoded email message.

    Attributes:
        source_offset: Byte offset of the frame in the archive (also the message id)
        headers: All header fields in order, duplicates preserved
        body_parts: Top-level body parts (children of a multipart body, or the single part)
        content_type: Content type of the message body as a whole
        subject: Decoded Subject
        sender: Decoded From header
        sender_address: Lower-case sender address (From, Return-Path, Sender, envelope)
        to: Decoded To header
        date: Timezone-aware Date, None if missing or unparsable
        message_id: Normalized Message-ID, if any
        in_reply_to: First Message-ID named by In-Reply-To, if any
        references: Message-IDs named by References, oldest first
        envelope: The mbox envelope line without ``From ``
        warnings: Non-fatal problems found while decoding
    """

    source_offset: int
    headers: Tuple[Header, ...]
    body_parts: Tuple[BodyPart, ...]
    content_type: str = "text/plain"
    subject: str = ""
    sender: str = ""
    sender_address: str = ""
    to: str = ""
    date: Optional[datetime] = None
    message_id: Optional[str] = None
    in_reply_to: Optional[str] = None
    references: Tuple[str, ...] = ()
    envelope: str = ""
    warnings: Tuple[str, ...] = ()

    def __post_init__(self):
        """Validate fields after initialization."""
        if self.source_offset < 0:
            raise ValueError("source_offset must be non-negative")
        if self.date is not None and self.date.tzinfo is None:
            raise ValueError("date must be timezone-aware")

    @property
    def id(self) -> int:
        return self.source_offset

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the first value of header ``name`` (case-insensitive)."""
        for header in self.headers:
            if header.matches(name):
                return header.value
        return default

    def get_all(self, name: str) -> List[str]:
        return [header.value for header in self.headers if header.matches(name)]

    @property
    def recipients(self) -> List[str]:
        return [address.lower() for _, address in getaddresses(self.get_all("To")) if address]

    @property
    def sender_domain(self) -> str:
        return domain_of(self.sender_address)

    @property
    def normalized_subject(self) -> str:
        return normalize_subject(self.subject)

    @property
    def is_dated(self) -> bool:
        return self.date is not None

    def walk(self) -> Iterator[BodyPart]:
        for part in self.body_parts:
            yield from part.walk()

    def attachments(self) -> List[BodyPart]:
        return [part for part in self.walk() if part.is_attachment]

    def text_body(self) -> str:
        """Return the first inline text/plain part, falling back to any inline text part."""
        texts = [part for part in self.walk() if part.is_text and not part.is_attachment]
        for part in texts:
            if part.content_type == "text/plain":
                return part.text
        return texts[0].text if texts else ""
