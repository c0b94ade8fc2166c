"""Data models for archive frames, decoded messages and buckets"""

from .bucket import Bucket, bucket_name
from .criteria import Criterion, DateGranularity
from .diagnostic import Diagnostic, DiagnosticsSink, ErrorKind
from .message import BodyPart, Header, Message
from .raw_frame import RawFrame

__all__ = [
    "Bucket",
    "bucket_name",
    "Criterion",
    "DateGranularity",
    "Diagnostic",
    "DiagnosticsSink",
    "ErrorKind",
    "BodyPart",
    "Header",
    "Message",
    "RawFrame",
]
