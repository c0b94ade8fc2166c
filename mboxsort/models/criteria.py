"""Enumerated classification and sort criteria."""

from enum import Enum


class Criterion(Enum):
    """Message attribute used for grouping or sorting."""

    DATE = "date"
    SENDER = "sender"
    SUBJECT = "subject"
    THREAD = "thread"


class DateGranularity(Enum):
    """Width of a date bucket."""

    DAY = "day"
    MONTH = "month"
    YEAR = "year"
