"""Bucket assignment and per-bucket ordering of decoded messages."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from mboxsort.config.app_config import ClassificationConfig
from mboxsort.errors import ConfigurationError
from mboxsort.models.bucket import (
    NO_SUBJECT,
    PLACEHOLDER_LABELS,
    UNKNOWN_SENDER,
    UNMATCHED_SUBJECT,
    Bucket,
    bucket_name,
)
from mboxsort.models.criteria import Criterion
from mboxsort.models.message import Message
from .rules import ClassificationRule, RuleKind, rules_from_config
from .sort_keys import date_label, sort_messages
from .thread_index import ThreadIndex

logger = logging.getLogger(__name__)


@dataclass
class ClassificationResult:
    """
    Buckets and the messages they reference.

    Attributes:
        buckets: Bucket name -> Bucket, in output order
        messages: Message id -> Message
    """

    buckets: Dict[str, Bucket] = field(default_factory=dict)
    messages: Dict[int, Message] = field(default_factory=dict)

    def messages_in(self, name: str) -> List[Message]:
        return [self.messages[message_id] for message_id in self.buckets[name].message_ids]

    def as_mapping(self) -> Dict[str, List[Message]]:
        return {name: self.messages_in(name) for name in self.buckets}

    def buckets_of(self, message: Message) -> List[str]:
        return [name for name, bucket in self.buckets.items() if message.id in bucket]


class Classifier:
    """
    Assigns messages to buckets and orders each bucket.

    Sender, subject and date rules look at one message at a time and can be
    evaluated as messages stream in (``assign``). Thread rules and thread
    sorting need the full message set; ``classify`` builds a ThreadIndex
    whenever ``requires_full_set`` is true.
    """

    def __init__(self, rules: Sequence[ClassificationRule], sort_by: Criterion = Criterion.DATE):
        """
        Initialize classifier.

        Args:
            rules: Grouping rules, in output order
            sort_by: Criterion that orders messages inside each bucket

        Raises:
            ConfigurationError: If no rules are given
        """
        if not rules:
            raise ConfigurationError("At least one classification rule is required")
        self.rules = tuple(rules)
        self.sort_by = sort_by

    @classmethod
    def from_config(cls, config: ClassificationConfig) -> "Classifier":
        return cls(rules_from_config(config), sort_by=config.sort_by)

    @property
    def requires_full_set(self) -> bool:
        return self.sort_by is Criterion.THREAD or any(rule.requires_full_set for rule in self.rules)

    def assign(self, message: Message, threads: Optional[ThreadIndex] = None) -> List[str]:
        """
        Return every bucket name the message belongs to, in rule order.

        Raises:
            ValueError: If a thread rule is active and no ThreadIndex is given
        """
        names: List[str] = []
        for rule in self.rules:
            for name in self._bucket_names(rule, message, threads):
                if name not in names:
                    names.append(name)
        return names

    def _bucket_names(
        self,
        rule: ClassificationRule,
        message: Message,
        threads: Optional[ThreadIndex],
    ) -> List[str]:
        criterion = rule.criterion

        if rule.kind is RuleKind.BY_SENDER:
            return [bucket_name(criterion, message.sender_domain or UNKNOWN_SENDER)]

        if rule.kind is RuleKind.BY_SUBJECT:
            if not rule.keywords:
                return [bucket_name(criterion, message.normalized_subject or NO_SUBJECT)]
            subject = message.subject.casefold()
            matched = [keyword.casefold() for keyword in rule.keywords if keyword.casefold() in subject]
            return [bucket_name(criterion, keyword) for keyword in matched] or [
                bucket_name(criterion, UNMATCHED_SUBJECT)
            ]

        if rule.kind is RuleKind.BY_DATE:
            return [bucket_name(criterion, date_label(message, rule.granularity))]

        if rule.kind is RuleKind.BY_THREAD:
            if threads is None:
                raise ValueError("Thread grouping requires the full message set")
            return [bucket_name(criterion, threads.name_of(message))]

        raise ValueError(f"Unsupported rule kind: {rule.kind}")

    def classify(self, messages: Iterable[Message]) -> ClassificationResult:
        """
        Assign all messages and sort each bucket.

        Every message lands in at least one bucket. Buckets are ordered by
        rule, then with placeholder buckets last, then by name.
        """
        ordered = sorted(messages, key=lambda message: message.source_offset)
        threads = ThreadIndex(ordered) if self.requires_full_set else None

        members: Dict[str, List[Message]] = {}
        bucket_order: Dict[str, tuple] = {}
        for message in ordered:
            for rule_index, rule in enumerate(self.rules):
                for name in self._bucket_names(rule, message, threads):
                    bucket_messages = members.setdefault(name, [])
                    if not bucket_messages or bucket_messages[-1] is not message:
                        bucket_messages.append(message)
                    if name not in bucket_order:
                        label = name.partition(":")[2]
                        bucket_order[name] = (rule_index, label in PLACEHOLDER_LABELS, name, rule.criterion)

        buckets: Dict[str, Bucket] = {}
        for name in sorted(members, key=lambda bucket: bucket_order[bucket][:3]):
            sorted_members = sort_messages(members[name], self.sort_by, threads)
            buckets[name] = Bucket(
                name=name,
                criterion=bucket_order[name][3],
                message_ids=tuple(message.id for message in sorted_members),
            )
            logger.debug("Bucket %s: %d messages", name, len(sorted_members))

        return ClassificationResult(buckets=buckets, messages={message.id: message for message in ordered})
