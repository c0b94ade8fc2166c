"""Business logic services"""

from .classification import ClassificationRule, Classifier, ThreadIndex
from .email_parser import FrameSplitter, MessageDecoder
from .pipeline import PipelineCoordinator, PipelineResult, sort_mailbox
from .reporting import ReportFormatter, sender_counts, top_senders

__all__ = [
    "ClassificationRule",
    "Classifier",
    "ThreadIndex",
    "FrameSplitter",
    "MessageDecoder",
    "PipelineCoordinator",
    "PipelineResult",
    "sort_mailbox",
    "ReportFormatter",
    "sender_counts",
    "top_senders",
]
