#!/usr/bin/env python3
"""
FinancialDate Primitive Type

Immutable calendar-date wrapper used for transaction dates and billing months.
Timestamps are reduced to their calendar day; no time component survives.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime

ISO_DATE_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def add_months(value: date, months: int) -> date:
    """
    Add calendar months, clamping the day to the last day of the target month.

    Examples:
        add_months(date(2024, 1, 15), 1) -> date(2024, 2, 15)
        add_months(date(2024, 1, 31), 1) -> date(2024, 2, 29)
        add_months(date(2024, 11, 30), 3) -> date(2025, 2, 28)
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def first_of_month(value: date) -> date:
    """Return day 1 of the same month and year."""
    return value.replace(day=1)


def has_iso_date_prefix(value: str) -> bool:
    """Check whether a string starts with a YYYY-MM-DD prefix."""
    return bool(ISO_DATE_PREFIX.match(value))


@dataclass(frozen=True)
class FinancialDate:
    """Immutable financial date wrapper with consistent formatting."""

    date: date

    @classmethod
    def from_string(cls, date_str: str) -> "FinancialDate":
        """
        Parse from string.

        Only the leading YYYY-MM-DD is read, so "2024-01-01T23:59:00.000Z"
        and "2024-01-01" are the same day.

        Raises:
            ValueError: If the string has no valid date
        """
        match = ISO_DATE_PREFIX.match(date_str)
        if not match:
            raise ValueError(f"Date must start with YYYY-MM-DD: {date_str!r}")
        year, month, day = (int(part) for part in match.groups())
        return cls(date=date(year, month, day))

    @classmethod
    def from_value(cls, value: "str | date | datetime | FinancialDate") -> "FinancialDate":
        """
        Create from a string, date, datetime or FinancialDate.

        Raises:
            TypeError: If the value is none of those
            ValueError: If a string has no valid date
        """
        if isinstance(value, FinancialDate):
            return value
        if isinstance(value, datetime):
            return cls(date=value.date())
        if isinstance(value, date):
            return cls(date=value)
        if not isinstance(value, str):
            raise TypeError(f"Expected a date or YYYY-MM-DD string, got {type(value).__name__}")
        return cls.from_string(value)

    def to_iso_string(self) -> str:
        """Format as YYYY-MM-DD."""
        return self.date.isoformat()

    def add_months(self, months: int) -> "FinancialDate":
        """Add calendar months with end-of-month clamping."""
        return FinancialDate(date=add_months(self.date, months))

    def first_of_month(self) -> "FinancialDate":
        """Get the first day of this date's month."""
        return FinancialDate(date=first_of_month(self.date))

    def days_between(self, other: "FinancialDate") -> int:
        """Absolute number of days between two dates."""
        return abs((other.date - self.date).days)

    def __str__(self) -> str:
        """String representation."""
        return self.to_iso_string()

    def __repr__(self) -> str:
        """Repr format."""
        return f"FinancialDate(date={self.date!r})"
