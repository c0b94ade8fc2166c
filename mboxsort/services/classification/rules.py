"""Classification rules as a tagged variant."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

from mboxsort.config.app_config import ClassificationConfig
from mboxsort.errors import ConfigurationError
from mboxsort.models.criteria import Criterion, DateGranularity


class RuleKind(Enum):
    """Kind of classification rule."""

    BY_SENDER = "by_sender"
    BY_SUBJECT = "by_subject"
    BY_DATE = "by_date"
    BY_THREAD = "by_thread"


RULE_CRITERIA = {
    RuleKind.BY_SENDER: Criterion.SENDER,
    RuleKind.BY_SUBJECT: Criterion.SUBJECT,
    RuleKind.BY_DATE: Criterion.DATE,
    RuleKind.BY_THREAD: Criterion.THREAD,
}


@dataclass(frozen=True)
class ClassificationRule:
    """
    One grouping rule and its parameters.

    Attributes:
        kind: Rule variant
        keywords: Subject keywords (BY_SUBJECT only); empty groups by normalized subject
        granularity: Date bucket width (BY_DATE only)
    """

    kind: RuleKind
    keywords: Tuple[str, ...] = ()
    granularity: DateGranularity = DateGranularity.MONTH

    def __post_init__(self):
        """Validate parameters against the rule kind."""
        if self.keywords and self.kind is not RuleKind.BY_SUBJECT:
            raise ConfigurationError(f"Rule {self.kind.value} does not accept keywords")
        if any(not keyword.strip() for keyword in self.keywords):
            raise ConfigurationError("Subject keywords must not be empty")

    @classmethod
    def by_sender(cls) -> "ClassificationRule":
        return cls(RuleKind.BY_SENDER)

    @classmethod
    def by_subject(cls, keywords: Iterable[str] = ()) -> "ClassificationRule":
        # Case-insensitive duplicates collapse onto the first spelling
        unique = {}
        for keyword in keywords:
            unique.setdefault(keyword.strip().casefold(), keyword.strip())
        return cls(RuleKind.BY_SUBJECT, keywords=tuple(unique.values()))

    @classmethod
    def by_date(cls, granularity: DateGranularity = DateGranularity.MONTH) -> "ClassificationRule":
        return cls(RuleKind.BY_DATE, granularity=granularity)

    @classmethod
    def by_thread(cls) -> "ClassificationRule":
        return cls(RuleKind.BY_THREAD)

    @property
    def criterion(self) -> Criterion:
        return RULE_CRITERIA[self.kind]

    @property
    def requires_full_set(self) -> bool:
        """Thread grouping needs every message before any bucket is final."""
        return self.kind is RuleKind.BY_THREAD


def rules_from_config(config: ClassificationConfig) -> Tuple[ClassificationRule, ...]:
    """
    Build one rule per ``group_by`` criterion, in configured order.

    Raises:
        ConfigurationError: If a criterion has no rule
    """
    rules = []
    for criterion in config.group_by:
        if criterion is Criterion.SENDER:
            rules.append(ClassificationRule.by_sender())
        elif criterion is Criterion.SUBJECT:
            rules.append(ClassificationRule.by_subject(config.subject_keywords))
        elif criterion is Criterion.DATE:
            rules.append(ClassificationRule.by_date(config.date_bucket_granularity))
        elif criterion is Criterion.THREAD:
            rules.append(ClassificationRule.by_thread())
        else:
            raise ConfigurationError(f"Unsupported group_by criterion: {criterion}")
    return tuple(rules)
