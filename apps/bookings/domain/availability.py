"""
Availability Calculator

Pure functions: (policy, day, booked hour ranges) -> DayAvailability.
Nothing here touches the database, so the whole calendar logic can be
tested with plain values.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List

from shared.domain.value_objects import HourRange
from apps.bookings.domain.policy import (
    PolicyConfig,
    ShiftFit,
    classify_shift,
    is_start_allowed_by_policy,
)


class DayState(Enum):
    AVAILABLE = 'available'
    BOOKED = 'booked'
    CLOSED = 'closed'


@dataclass(frozen=True)
class DayAvailability:
    """
    Availability of one yacht on one local date

    valid_starts_by_duration maps every policy duration to the ascending
    start hours at which a trip of exactly that length may begin.
    open_hours is the union of hours those trips would cover.
    segments_by_duration labels each of those starts AM, PM or FLEXIBLE.
    """
    day: date
    valid_starts_by_duration: Dict[int, List[int]]
    segments_by_duration: Dict[int, Dict[int, str]] = field(default_factory=dict)
    open_hours: List[int] = field(default_factory=list)
    am: DayState = DayState.CLOSED
    pm: DayState = DayState.CLOSED
    full_open: bool = False
    closed: bool = False

    def starts_for(self, duration_hours: int) -> List[int]:
        return self.valid_starts_by_duration.get(duration_hours, [])

    def to_dict(self) -> dict:
        return {
            'date': self.day.isoformat(),
            'am': self.am.value,
            'pm': self.pm.value,
            'full_open': self.full_open,
            'open_hours': list(self.open_hours),
            'valid_starts_by_duration': {
                str(duration): list(starts)
                for duration, starts in self.valid_starts_by_duration.items()
            },
            'segments_by_duration': {
                str(duration): {str(start): segment for start, segment in segments.items()}
                for duration, segments in self.segments_by_duration.items()
            },
        }


def blocked_intervals(policy: PolicyConfig, booked: Iterable[HourRange]) -> List[HourRange]:
    """Booked ranges grown by the inter-booking buffer on both sides."""
    buffer_hours = policy.inter_booking_buffer_hours
    return sorted(
        (hours.expanded(buffer_hours) for hours in booked),
        key=lambda hours: (hours.start_hour, hours.end_hour),
    )


def is_blocked(trip: HourRange, blocked: Iterable[HourRange]) -> bool:
    return any(trip.overlaps_with(interval) for interval in blocked)


def compute_day(
    policy: PolicyConfig,
    day: date,
    booked: Iterable[HourRange],
    *,
    closed: bool = False,
) -> DayAvailability:
    """
    Legal starts per duration for one date.

    `booked` holds the hours of every booked reservation touching the date,
    unexpanded. Legacy half-day blocks are passed in by their real hours
    and get the same buffer as any other trip.
    """
    starts: Dict[int, List[int]] = {duration: [] for duration in policy.durations}
    segments: Dict[int, Dict[int, str]] = {duration: {} for duration in policy.durations}
    if closed:
        return DayAvailability(
            day=day,
            valid_starts_by_duration=starts,
            segments_by_duration=segments,
            closed=True,
        )

    booked = list(booked)
    blocked = blocked_intervals(policy, booked)
    open_hours = set()
    fits = set()

    for duration in policy.durations:
        for start_hour in range(policy.day_start_hour, policy.day_end_hour - duration + 1):
            if not is_start_allowed_by_policy(policy, duration, start_hour):
                continue
            trip = HourRange(start_hour, start_hour + duration)
            if is_blocked(trip, blocked):
                continue
            fit = classify_shift(policy, trip.start_hour, trip.end_hour)
            starts[duration].append(start_hour)
            segments[duration][start_hour] = fit.segment
            open_hours.update(trip.hours())
            fits.add(fit)

    return DayAvailability(
        day=day,
        valid_starts_by_duration=starts,
        segments_by_duration=segments,
        open_hours=sorted(open_hours),
        am=_half_state(ShiftFit.MORNING in fits, policy.morning_window, booked),
        pm=_half_state(ShiftFit.AFTERNOON in fits, policy.afternoon_window, booked),
        full_open=bool(starts[policy.max_duration_hours]),
    )


def _half_state(has_fitting_trip: bool, window: HourRange, booked: List[HourRange]) -> DayState:
    if has_fitting_trip:
        return DayState.AVAILABLE
    if any(hours.overlaps_with(window) for hours in booked):
        return DayState.BOOKED
    return DayState.CLOSED
