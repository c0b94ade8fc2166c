"""Utility functions"""

from .address_utils import domain_of, extract_address
from .message_id import normalize_message_id, parse_message_id_list
from .unicode_utils import decode_email_header, is_text_charset, normalize_subject, truncate_subject

__all__ = [
    "domain_of",
    "extract_address",
    "normalize_message_id",
    "parse_message_id_list",
    "decode_email_header",
    "is_text_charset",
    "normalize_subject",
    "truncate_subject",
]
