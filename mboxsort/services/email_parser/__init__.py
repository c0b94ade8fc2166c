"""Mbox frame splitting and message decoding services."""

from .frame_splitter import FrameSplitter, is_envelope_line
from .header_parser import parse_headers, split_header_block
from .message_decoder import MessageDecoder, build_message, parse_date
from .mime_decoder import decode_part, decode_transfer_encoding, split_multipart

__all__ = [
    "FrameSplitter",
    "is_envelope_line",
    "parse_headers",
    "split_header_block",
    "MessageDecoder",
    "build_message",
    "parse_date",
    "decode_part",
    "decode_transfer_encoding",
    "split_multipart",
]
