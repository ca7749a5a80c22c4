"""
Common Value Objects

Value objects used across the booking domain:
- HourRange: a half-open range of whole hours on one local calendar day
- MonthKey: a calendar month addressed as "YYYY-MM"
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

from shared.domain.base import ValueObject

_MONTH_KEY_RE = re.compile(r'^(\d{4})-(\d{2})$')


@dataclass(frozen=True)
class HourRange(ValueObject):
    """
    Hour range value object

    Represents hours from start_hour (inclusive) to end_hour (exclusive),
    counted from local midnight of the day being looked at. Values outside
    0..24 are allowed so that buffer-expanded intervals of trips near the
    edge of the day keep their true extent.
    """
    start_hour: int
    end_hour: int

    def __post_init__(self):
        if self.start_hour >= self.end_hour:
            raise ValueError(
                f"Start hour ({self.start_hour}) must be before end hour ({self.end_hour})"
            )

    def overlaps_with(self, other: 'HourRange') -> bool:
        """
        Check if this range overlaps with another

        Ranges are half-open, so adjacent ranges don't overlap:
            - HourRange(9, 13) overlaps with HourRange(12, 15) -> True
            - HourRange(9, 13) overlaps with HourRange(13, 16) -> False
        """
        if not isinstance(other, HourRange):
            raise TypeError("Can only check overlap with another HourRange")
        return self.start_hour < other.end_hour and self.end_hour > other.start_hour

    def expanded(self, hours: int) -> 'HourRange':
        """Range grown by `hours` on both sides."""
        return HourRange(self.start_hour - hours, self.end_hour + hours)

    def hours(self) -> Iterator[int]:
        return iter(range(self.start_hour, self.end_hour))

    def __len__(self) -> int:
        return self.end_hour - self.start_hour

    def __str__(self):
        return f"{self.start_hour:02d}:00-{self.end_hour:02d}:00"

    def __repr__(self):
        return f"HourRange({self.start_hour}, {self.end_hour})"


@dataclass(frozen=True)
class MonthKey(ValueObject):
    """Calendar month, parsed from and rendered as "YYYY-MM"."""
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"Invalid month: {self.month}")
        if not 1970 <= self.year <= 9998:
            raise ValueError(f"Invalid year: {self.year}")

    @classmethod
    def parse(cls, value: str) -> 'MonthKey':
        match = _MONTH_KEY_RE.match((value or '').strip())
        if not match:
            raise ValueError(f"Month must be formatted as YYYY-MM, got {value!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def days(self) -> Iterator[date]:
        current = self.first_day
        while current <= self.last_day:
            yield current
            current += timedelta(days=1)

    def __str__(self):
        return f"{self.year:04d}-{self.month:02d}"

