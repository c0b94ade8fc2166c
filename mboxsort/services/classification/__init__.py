"""Message classification and sorting services."""

from .classifier import ClassificationResult, Classifier
from .rules import ClassificationRule, RuleKind, rules_from_config
from .sort_keys import date_label, sort_key, sort_messages
from .thread_index import ThreadIndex

__all__ = [
    "ClassificationResult",
    "Classifier",
    "ClassificationRule",
    "RuleKind",
    "rules_from_config",
    "date_label",
    "sort_key",
    "sort_messages",
    "ThreadIndex",
]
