"""Email address extraction from header values."""

from email.utils import parseaddr


def extract_address(header_value: str | None) -> str:
    """
    Extract the bare email address from a header value.

    Handles ``Name <user@example.com>``, ``<user@example.com>`` and bare
    addresses. When no address can be recognized the trimmed value is
    returned so callers can decide whether it is usable.

    Examples:
        >>> extract_address("Jane Doe <Jane@Example.com>")
        'Jane@Example.com'
        >>> extract_address("<>")
        ''
    """
    if not header_value:
        return ""

    trimmed = header_value.strip()

    _, address = parseaddr(trimmed)
    if "@" in address:
        return address

    # Last '<' and the first '>' after it
    start = trimmed.rfind("<")
    end = trimmed.find(">", start) if start != -1 else -1
    if start != -1 and end != -1:
        return trimmed[start + 1 : end].strip()

    candidate = trimmed.split(" ")[0]
    if "@" in candidate:
        return candidate

    return trimmed


def domain_of(address: str) -> str:
    """Return the lower-case domain of ``address``, or '' if it has none."""
    local, at, domain = address.strip().rpartition("@")
    if not at or not local:
        return ""
    return domain.strip().rstrip(">").lower()
