"""Tests for Classifier and sorting."""

from datetime import datetime, timezone

import pytest

from mboxsort.config.app_config import ClassificationConfig
from mboxsort.errors import ConfigurationError
from mboxsort.models.criteria import Criterion, DateGranularity
from mboxsort.services.classification.classifier import Classifier
from mboxsort.services.classification.rules import ClassificationRule, RuleKind, rules_from_config
from mboxsort.services.classification.sort_keys import date_label, sort_key, sort_messages


class TestClassificationRule:
    """Test rule construction."""

    def test_rules_from_config(self):
        """Test building rules from configuration in order."""
        config = ClassificationConfig(
            group_by=["thread", "date", "subject", "sender"],
            date_bucket_granularity="year",
            subject_keywords=["invoice"],
        )

        rules = rules_from_config(config)

        assert [rule.kind for rule in rules] == [
            RuleKind.BY_THREAD,
            RuleKind.BY_DATE,
            RuleKind.BY_SUBJECT,
            RuleKind.BY_SENDER,
        ]
        assert rules[1].granularity == DateGranularity.YEAR
        assert rules[2].keywords == ("invoice",)
        assert rules[0].requires_full_set
        assert not rules[1].requires_full_set

    def test_keywords_only_for_subject_rules(self):
        """Test that keywords are rejected on non-subject rules."""
        with pytest.raises(ConfigurationError):
            ClassificationRule(RuleKind.BY_SENDER, keywords=("x",))

    def test_duplicate_keywords_collapse(self):
        """Test that keywords differing only in case are merged."""
        rule = ClassificationRule.by_subject(["Invoice", "invoice ", "Report"])

        assert rule.keywords == ("Invoice", "Report")

    def test_classifier_requires_rules(self):
        """Test that a classifier without rules is rejected."""
        with pytest.raises(ConfigurationError):
            Classifier([])


class TestSortKeys:
    """Test sort keys and stable sorting."""

    def test_date_label(self, make_message, decode):
        """Test date labels at each granularity."""
        message = decode(make_message(date="Sun, 31 Mar 2024 23:30:00 -0200"))

        assert date_label(message, DateGranularity.DAY) == "2024-04-01"
        assert date_label(message, DateGranularity.MONTH) == "2024-04"
        assert date_label(message, DateGranularity.YEAR) == "2024"

    def test_undated_sorts_last(self, make_message, decode):
        """Test that undated messages sort last."""
        dated = decode(make_message(), offset=10)
        undated = decode(make_message(date=None), offset=0)

        assert sort_key(dated, Criterion.DATE) < sort_key(undated, Criterion.DATE)
        assert sort_messages([undated, dated], Criterion.DATE) == [dated, undated]

    def test_thread_sort_requires_index(self, make_message, decode):
        """Test that sorting by thread needs a thread index."""
        with pytest.raises(ValueError):
            sort_key(decode(make_message()), Criterion.THREAD)

    def test_equal_keys_keep_archive_order(self, make_message, decode):
        """Test that sorting is stable with respect to source offset."""
        first = decode(make_message(subject="First"), offset=0)
        second = decode(make_message(subject="Second"), offset=100)
        third = decode(make_message(subject="Third"), offset=200)

        result = sort_messages([third, first, second], Criterion.DATE)

        assert result == [first, second, third]


class TestClassifier:
    """Test bucket assignment and ordering."""

    def test_group_by_sender_domain(self, make_message, decode):
        """Test grouping messages by sender domain."""
        a = decode(make_message(sender="a@example.com"), offset=0)
        b = decode(make_message(sender="b@other.org"), offset=10)
        c = decode(make_message(sender="c@Example.com"), offset=20)

        result = Classifier([ClassificationRule.by_sender()]).classify([a, b, c])

        assert list(result.buckets) == ["sender:example.com", "sender:other.org"]
        assert result.messages_in("sender:example.com") == [a, c]

    def test_message_matching_two_rules_lands_in_both_buckets(self, make_message, decode):
        """Test that ambiguous classification assigns to every matching bucket."""
        message = decode(make_message(sender="billing@acme.com", subject="Your invoice"))
        classifier = Classifier([ClassificationRule.by_sender(), ClassificationRule.by_subject(["invoice"])])

        result = classifier.classify([message])

        assert result.buckets_of(message) == ["sender:acme.com", "subject:invoice"]
        assert classifier.assign(message) == ["sender:acme.com", "subject:invoice"]

    def test_message_matching_two_keywords(self, make_message, decode):
        """Test that a subject matching two keywords lands in both buckets."""
        message = decode(make_message(subject="Invoice and Report"))
        classifier = Classifier([ClassificationRule.by_subject(["report", "INVOICE", "budget"])])

        assert classifier.assign(message) == ["subject:report", "subject:invoice"]

    def test_unmatched_subject_bucket(self, make_message, decode):
        """Test the placeholder bucket for unmatched subjects."""
        message = decode(make_message(subject="Lunch"))
        classifier = Classifier([ClassificationRule.by_subject(["invoice"])])

        assert classifier.assign(message) == ["subject:(unmatched)"]

    def test_subject_without_keywords_groups_by_normalized_subject(self, make_message, decode):
        """Test grouping by normalized subject without keywords."""
        a = decode(make_message(subject="Budget"), offset=0)
        b = decode(make_message(subject="Re: budget"), offset=10)

        result = Classifier([ClassificationRule.by_subject()]).classify([a, b])

        assert result.as_mapping() == {"subject:budget": [a, b]}

    def test_unknown_sender_bucket(self, make_message, decode):
        """Test the placeholder bucket for unknown senders."""
        message = decode(make_message(sender="undisclosed", envelope=b"From MAILER-DAEMON Thu Jan  1 00:00:00 1970\n"))

        assert Classifier([ClassificationRule.by_sender()]).assign(message) == ["sender:(unknown)"]

    def test_date_buckets_with_undated_last(self, make_message, decode):
        """Test that the undated bucket follows all dated buckets."""
        undated = decode(make_message(date=None), offset=0)
        april = decode(make_message(date="Mon, 01 Apr 2024 08:00:00 +0000"), offset=10)
        march = decode(make_message(date="Fri, 01 Mar 2024 08:00:00 +0000"), offset=20)

        result = Classifier([ClassificationRule.by_date(DateGranularity.MONTH)]).classify([undated, april, march])

        assert list(result.buckets) == ["date:2024-03", "date:2024-04", "date:undated"]
        assert result.buckets["date:undated"].is_placeholder

    def test_bucket_sorted_by_date(self, make_message, decode):
        """Test that messages inside a bucket are ordered by date."""
        late = decode(make_message(date="Fri, 01 Mar 2024 18:00:00 +0000"), offset=0)
        early = decode(make_message(date="Fri, 01 Mar 2024 08:00:00 +0000"), offset=10)

        result = Classifier([ClassificationRule.by_sender()], sort_by=Criterion.DATE).classify([late, early])

        assert result.messages_in("sender:example.com") == [early, late]
        assert result.buckets["sender:example.com"].message_ids == (10, 0)

    def test_stable_order_in_every_bucket(self, make_message, decode):
        """Test that equal sort keys keep archive order in all buckets."""
        messages = [
            decode(make_message(subject=f"Invoice {index}", sender="x@acme.com"), offset=index * 100)
            for index in range(5)
        ]
        classifier = Classifier(
            [ClassificationRule.by_sender(), ClassificationRule.by_subject(["invoice"])],
            sort_by=Criterion.DATE,
        )

        result = classifier.classify(list(reversed(messages)))

        for bucket in result.buckets.values():
            assert list(bucket.message_ids) == [0, 100, 200, 300, 400]

    def test_thread_buckets(self, make_message, decode):
        """Test that a reply joins its parent's thread bucket."""
        root = decode(make_message(subject="Plans", message_id="<root@x.org>"), offset=0)
        other = decode(make_message(subject="Other", message_id="<other@x.org>"), offset=100)
        reply = decode(make_message(subject="Re: Plans", in_reply_to="<root@x.org>"), offset=200)
        classifier = Classifier([ClassificationRule.by_thread()])

        assert classifier.requires_full_set
        result = classifier.classify([root, other, reply])

        assert result.as_mapping() == {
            "thread:<other@x.org>": [other],
            "thread:<root@x.org>": [root, reply],
        }

    def test_thread_rule_needs_full_set_for_assign(self, make_message, decode):
        """Test that assign needs a thread index for thread rules."""
        with pytest.raises(ValueError):
            Classifier([ClassificationRule.by_thread()]).assign(decode(make_message()))

    def test_sort_by_thread(self, make_message, decode):
        """Test ordering messages by thread rank."""
        a = decode(make_message(subject="A", message_id="<a@x.org>", date="Fri, 01 Mar 2024 10:00:00 +0000"), offset=0)
        b = decode(make_message(subject="B", message_id="<b@x.org>", date="Fri, 01 Mar 2024 09:00:00 +0000"), offset=10)
        a_reply = decode(make_message(subject="Re: A", in_reply_to="<a@x.org>"), offset=20)
        classifier = Classifier([ClassificationRule.by_sender()], sort_by=Criterion.THREAD)

        assert classifier.requires_full_set
        result = classifier.classify([a, b, a_reply])

        assert result.messages_in("sender:example.com") == [a, a_reply, b]

    def test_every_message_assigned(self, make_message, decode):
        """Test that every message lands in one bucket per rule."""
        messages = [
            decode(make_message(sender=None, subject=None, date=None, envelope=b"From x Thu Jan  1 00:00:00 1970\n"), offset=0),
            decode(make_message(), offset=50),
        ]
        classifier = Classifier(
            [
                ClassificationRule.by_sender(),
                ClassificationRule.by_subject(["zzz"]),
                ClassificationRule.by_date(),
            ]
        )

        result = classifier.classify(messages)

        for message in messages:
            assert len(result.buckets_of(message)) == 3

    def test_from_config(self):
        """Test building a classifier from configuration."""
        classifier = Classifier.from_config(ClassificationConfig(sort_by="sender", group_by="date"))

        assert classifier.sort_by == Criterion.SENDER
        assert [rule.kind for rule in classifier.rules] == [RuleKind.BY_DATE]
        assert not classifier.requires_full_set

    def test_date_bucket_uses_utc(self, make_message, decode):
        """Test that date buckets are computed in UTC."""
        message = decode(make_message(date="Mon, 01 Apr 2024 01:00:00 +0300"))

        assert message.date == datetime(2024, 3, 31, 22, 0, tzinfo=timezone.utc)
        assert Classifier([ClassificationRule.by_date(DateGranularity.DAY)]).assign(message) == ["date:2024-03-31"]
