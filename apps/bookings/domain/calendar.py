"""
Yacht Calendar Aggregate

The consistency boundary against double booking. Every create and
reschedule checks its trip against a freshly loaded calendar for the
yacht and date before anything is written.

Layers:
1. Domain check: can_allocate() against buffer-expanded bookings
2. Row lock: the yacht row is locked (SELECT FOR UPDATE) while loading
3. Database constraint: PostgreSQL EXCLUDE on [start_at, blocked_until)
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List

from shared.domain.base import Aggregate
from shared.domain.value_objects import HourRange
from apps.bookings.domain.availability import DayAvailability, compute_day
from apps.bookings.domain.exceptions import SlotConflict
from apps.bookings.domain.policy import PolicyConfig


@dataclass(frozen=True)
class BookedSlot:
    """Hours held by one booked reservation, relative to the calendar day"""
    booking_uid: str
    hours: HourRange


@dataclass(kw_only=True)
class YachtCalendar(Aggregate):
    """
    Booked slots of one yacht around one local date

    Key invariant: no two booked slots are closer than the
    inter-booking buffer.

    Usage:
        calendar = store.load_calendar(yacht, day, lock=True)
        calendar.allocate(reservation.booking_uid, trip)
    """

    yacht_id: int
    day: date
    policy: PolicyConfig
    slots: List[BookedSlot] = field(default_factory=list)
    closed: bool = False

    def _others(self, exclude_uid: str | None) -> List[BookedSlot]:
        return [slot for slot in self.slots if slot.booking_uid != exclude_uid]

    def conflicts_for(self, trip: HourRange, exclude_uid: str | None = None) -> List[BookedSlot]:
        buffer_hours = self.policy.inter_booking_buffer_hours
        return [
            slot for slot in self._others(exclude_uid)
            if slot.hours.expanded(buffer_hours).overlaps_with(trip)
        ]

    def can_allocate(self, trip: HourRange, exclude_uid: str | None = None) -> bool:
        return not self.conflicts_for(trip, exclude_uid)

    def allocate(self, booking_uid: str, trip: HourRange, exclude_uid: str | None = None) -> BookedSlot:
        """
        Hold `trip` for `booking_uid`

        `exclude_uid` is the booking being moved by a reschedule; its old
        slot is released in the same step.

        Raises:
            SlotConflict: if the trip touches another booking or its buffer
        """
        conflicts = self.conflicts_for(trip, exclude_uid)
        if conflicts:
            raise SlotConflict(
                f"{trip} on {self.day.isoformat()} is no longer available",
                conflicting=[slot.booking_uid for slot in conflicts],
            )

        self.slots = self._others(exclude_uid)
        slot = BookedSlot(booking_uid=booking_uid, hours=trip)
        self.slots.append(slot)
        self.touch()
        return slot

    def availability(self, exclude_uid: str | None = None) -> DayAvailability:
        return compute_day(
            self.policy,
            self.day,
            [slot.hours for slot in self._others(exclude_uid)],
            closed=self.closed,
        )

    def __str__(self):
        return f"YachtCalendar(yacht={self.yacht_id}, day={self.day}, slots={len(self.slots)})"
