"""
Booking Policy

The charter policy in one place, shared by the availability calculator and
by the commit-time check of every mutation:
- PolicyConfig: immutable policy constants, loaded once per process
- ShiftFit / classify_shift: morning, afternoon or flexible trips
- is_start_allowed_by_policy / validate_slot: is (duration, start) legal
  on an empty day
"""

from dataclasses import asdict, dataclass
from enum import Enum
from functools import lru_cache
from numbers import Integral
from typing import Any, Mapping

from shared.domain.base import ValueObject
from shared.domain.value_objects import HourRange
from apps.bookings.domain.exceptions import PolicyViolation

# Trips this short must not straddle the midday buffer window.
SHORT_TRIP_HOURS = 3
# Half-day trips run in the morning only.
HALF_DAY_TRIP_HOURS = 4


class ShiftFit(Enum):
    """Where a trip sits relative to the midday buffer"""
    MORNING = 'morning'
    AFTERNOON = 'afternoon'
    FLEXIBLE = 'flexible'

    @property
    def segment(self) -> str:
        """Short label shown next to a start time"""
        return {
            ShiftFit.MORNING: 'AM',
            ShiftFit.AFTERNOON: 'PM',
            ShiftFit.FLEXIBLE: 'FLEXIBLE',
        }[self]


@dataclass(frozen=True)
class PolicyConfig(ValueObject):
    """
    Policy constants

    All hours are local hours of the yacht's calendar day. The time step is
    fixed at one hour: every start and every duration is a whole hour.
    """
    day_start_hour: int = 6
    day_end_hour: int = 18
    morning_end_hour: int = 13
    buffer_start_hour: int = 13
    buffer_end_hour: int = 15
    afternoon_start_hour: int = 15
    min_duration_hours: int = 3
    max_duration_hours: int = 8
    inter_booking_buffer_hours: int = 2
    time_step_minutes: int = 60
    version: str = 'v3'

    def __post_init__(self):
        if self.time_step_minutes != 60:
            raise ValueError("Only a 60 minute time step is supported")
        if not 0 <= self.day_start_hour < self.day_end_hour <= 24:
            raise ValueError(
                f"Invalid operating window {self.day_start_hour}-{self.day_end_hour}"
            )
        if not (self.day_start_hour < self.morning_end_hour
                <= self.afternoon_start_hour < self.day_end_hour):
            raise ValueError("Morning end must precede afternoon start inside the operating window")
        if not self.buffer_start_hour <= self.buffer_end_hour:
            raise ValueError("Buffer window start must not be after its end")
        if not 1 <= self.min_duration_hours <= self.max_duration_hours:
            raise ValueError("Minimum duration must be positive and not exceed the maximum")
        if self.max_duration_hours > self.day_end_hour - self.day_start_hour:
            raise ValueError("Maximum duration does not fit the operating window")
        if self.inter_booking_buffer_hours < 0:
            raise ValueError("Inter-booking buffer cannot be negative")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'PolicyConfig':
        """Build from a settings dict, ignoring unknown keys."""
        known = cls.__dataclass_fields__.keys()
        values = {}
        for key, value in data.items():
            name = key.lower()
            if name not in known or value in (None, ''):
                continue
            values[name] = value if name == 'version' else int(value)
        return cls(**values)

    @property
    def durations(self) -> range:
        return range(self.min_duration_hours, self.max_duration_hours + 1)

    @property
    def operating_window(self) -> HourRange:
        return HourRange(self.day_start_hour, self.day_end_hour)

    @property
    def morning_window(self) -> HourRange:
        return HourRange(self.day_start_hour, self.morning_end_hour)

    @property
    def afternoon_window(self) -> HourRange:
        return HourRange(self.afternoon_start_hour, self.day_end_hour)

    @property
    def buffer_window(self) -> HourRange | None:
        if self.buffer_start_hour == self.buffer_end_hour:
            return None
        return HourRange(self.buffer_start_hour, self.buffer_end_hour)

    def constraints(self) -> dict:
        """Public summary of the policy for availability responses"""
        buffer = self.buffer_window
        return {
            'min_hours': self.min_duration_hours,
            'max_hours': self.max_duration_hours,
            'time_step_minutes': self.time_step_minutes,
            'inter_booking_buffer_hours': self.inter_booking_buffer_hours,
            'operating_window': str(self.operating_window),
            'morning_window': str(self.morning_window),
            'buffer_window': str(buffer) if buffer else None,
            'afternoon_window': str(self.afternoon_window),
            'policy_version': self.version,
        }

    def to_dict(self) -> dict:
        return asdict(self)


@lru_cache(maxsize=1)
def get_policy() -> PolicyConfig:
    """Process-wide policy built from settings.YACHT_BOOKING_POLICY."""
    from django.conf import settings  # type: ignore

    return PolicyConfig.from_mapping(getattr(settings, 'YACHT_BOOKING_POLICY', {}))


def _is_whole_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, Integral):
        return True
    return isinstance(value, float) and value.is_integer()


def format_hour(hour24: int) -> str:
    """12-hour clock label, e.g. 15 -> "3:00 PM"."""
    normalized = hour24 % 24
    suffix = 'PM' if normalized >= 12 else 'AM'
    hour12 = normalized % 12 or 12
    return f"{hour12}:00 {suffix}"


def classify_shift(policy: PolicyConfig, start_hour: int, end_hour: int) -> ShiftFit:
    """Morning if the trip ends by morning end, afternoon if it starts at or after afternoon start."""
    if end_hour <= policy.morning_end_hour:
        return ShiftFit.MORNING
    if start_hour >= policy.afternoon_start_hour:
        return ShiftFit.AFTERNOON
    return ShiftFit.FLEXIBLE


def slot_rejection_reason(policy: PolicyConfig, duration_hours: Any, start_hour: Any) -> str | None:
    """
    Why (duration, start) is illegal on an empty day, or None if it is legal.

    Short trips respect the midday buffer; trips of five hours or more may
    straddle it as long as they stay inside the operating window.
    """
    if not _is_whole_number(duration_hours):
        return "Duration must be a whole number of hours"
    if not (policy.min_duration_hours <= duration_hours <= policy.max_duration_hours):
        return (
            f"Duration must be between {policy.min_duration_hours} and "
            f"{policy.max_duration_hours} hours"
        )
    if (int(duration_hours) * 60) % policy.time_step_minutes:
        return f"Duration must be a multiple of {policy.time_step_minutes} minutes"
    if not _is_whole_number(start_hour):
        return "Start time must be on the hour"

    duration_hours = int(duration_hours)
    start_hour = int(start_hour)
    end_hour = start_hour + duration_hours
    if start_hour < policy.day_start_hour or end_hour > policy.day_end_hour:
        return (
            f"Trip must run within {format_hour(policy.day_start_hour)} - "
            f"{format_hour(policy.day_end_hour)}"
        )

    if duration_hours == SHORT_TRIP_HOURS:
        if end_hour <= policy.morning_end_hour or start_hour >= policy.afternoon_start_hour:
            return None
        return (
            f"{SHORT_TRIP_HOURS}-hour trips must end by {format_hour(policy.morning_end_hour)} "
            f"or start at {format_hour(policy.afternoon_start_hour)} or later"
        )

    if duration_hours == HALF_DAY_TRIP_HOURS:
        if end_hour <= policy.morning_end_hour:
            return None
        return (
            f"{HALF_DAY_TRIP_HOURS}-hour trips must end by "
            f"{format_hour(policy.morning_end_hour)}"
        )

    return None


def is_start_allowed_by_policy(policy: PolicyConfig, duration_hours: Any, start_hour: Any) -> bool:
    return slot_rejection_reason(policy, duration_hours, start_hour) is None


def validate_slot(policy: PolicyConfig, duration_hours: Any, start_hour: Any) -> HourRange:
    """Return the trip's hour range or raise PolicyViolation."""
    reason = slot_rejection_reason(policy, duration_hours, start_hour)
    if reason:
        raise PolicyViolation(reason, duration_hours=duration_hours, start_hour=start_hour)
    return HourRange(int(start_hour), int(start_hour) + int(duration_hours))
