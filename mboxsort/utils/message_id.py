"""Message-ID normalization and list parsing utilities."""

import re
from typing import List, Optional

MESSAGE_ID_TOKEN = re.compile(r"<([^<>\s]+)>")


def normalize_message_id(message_id: str) -> str:
    """
    Normalize Message-ID to standard format with angle brackets.

    Args:
        message_id: Raw Message-ID (may or may not have brackets)

    Returns:
        Message-ID in format <id@domain>

    Raises:
        ValueError: If message_id is empty or malformed

    Examples:
        >>> normalize_message_id("abc@domain.com")
        '<abc@domain.com>'
        >>> normalize_message_id("<abc@domain.com>")
        '<abc@domain.com>'
    """
    if not message_id or not message_id.strip():
        raise ValueError("Message-ID is empty")

    clean_id = message_id.strip()

    if clean_id.startswith("<"):
        clean_id = clean_id[1:]
    if clean_id.endswith(">"):
        clean_id = clean_id[:-1]

    # Basic format validation (id@domain pattern)
    if "@" not in clean_id or any(ch.isspace() for ch in clean_id):
        raise ValueError(f"Invalid Message-ID format: {message_id}")

    return f"<{clean_id}>"


def parse_message_id_list(value: Optional[str]) -> List[str]:
    """
    Extract Message-IDs from an In-Reply-To or References header value.

    Bracketed ids are preferred; when none are present, whitespace-separated
    bare ``id@domain`` tokens are accepted.

    Examples:
        >>> parse_message_id_list("<a@x.org> <b@x.org>")
        ['<a@x.org>', '<b@x.org>']
        >>> parse_message_id_list("a@x.org")
        ['<a@x.org>']
    """
    if not value:
        return []

    bracketed = [f"<{token}>" for token in MESSAGE_ID_TOKEN.findall(value) if "@" in token]
    if bracketed:
        return bracketed

    ids = []
    for token in value.split():
        try:
            ids.append(normalize_message_id(token))
        except ValueError:
            continue
    return ids
