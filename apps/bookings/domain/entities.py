"""
Reservation Domain Entities

- Reservation: aggregate for one accepted booking of a yacht
- ReservationStatus / ReservationSource: lifecycle and origin
- Attendee: guest contact details
- Actor: who performs a mutation, as seen by the audit log
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List
from uuid import uuid4

from shared.domain.base import Aggregate, ValueObject, utcnow
from shared.domain.value_objects import HourRange
from apps.bookings.domain.exceptions import PolicyViolation
from apps.bookings.domain.policy import ShiftFit


class ReservationStatus(Enum):
    """
    Reservation lifecycle

    - BOOKED -> BOOKED (reschedule: new slot, new uid)
    - BOOKED -> CANCELLED
    - CANCELLED -> CANCELLED (repeated cancel is a no-op)
    """
    BOOKED = 'booked'
    CANCELLED = 'cancelled'


class ReservationSource(Enum):
    PUBLIC = 'public'
    INTERNAL = 'internal'
    ADMIN = 'admin'
    LEGACY = 'legacy'


class ChangeMode(Enum):
    SAME_DURATION = 'same_duration'
    DURATION_CHANGE = 'duration_change'


def generate_booking_uid() -> str:
    """Booking uid: YB{timestamp}{random}"""
    timestamp = utcnow().strftime('%Y%m%d%H%M%S')
    return f"YB{timestamp}{uuid4().hex[:10].upper()}"


@dataclass(frozen=True)
class Attendee(ValueObject):
    name: str
    email: str
    phone: str = ''

    def __post_init__(self):
        if not self.name.strip():
            raise PolicyViolation("Attendee name is required")
        if '@' not in self.email:
            raise PolicyViolation("Attendee email is invalid")
        object.__setattr__(self, 'name', self.name.strip())
        object.__setattr__(self, 'email', self.email.strip().lower())
        object.__setattr__(self, 'phone', self.phone.strip())


@dataclass(frozen=True)
class Actor(ValueObject):
    """Caller identity resolved by the transport layer"""
    user_id: int | None = None
    label: str = 'public'
    is_admin: bool = False
    is_staff: bool = False

    @classmethod
    def anonymous(cls) -> 'Actor':
        return cls()


@dataclass(kw_only=True)
class Reservation(Aggregate):
    """
    Reservation Aggregate Root

    `day` and `hours` are in the yacht's local calendar; `start_at` and
    `end_at` are the same trip as UTC instants.

    Key invariants:
    - booking_uid_history only grows; it never contains booking_uid
    - a cancelled reservation cannot be moved
    """

    booking_uid: str
    yacht_id: int
    day: date
    hours: HourRange
    start_at: datetime
    end_at: datetime
    status: ReservationStatus = ReservationStatus.BOOKED
    source: ReservationSource = ReservationSource.PUBLIC
    shift_fit: ShiftFit = ShiftFit.FLEXIBLE
    attendee: Attendee | None = None
    notes: str = ''
    booking_uid_history: List[str] = field(default_factory=list)
    cancellation_reason: str = ''
    cancelled_at: datetime | None = None
    created_by_id: int | None = None
    pk: int | None = None

    def __post_init__(self):
        if self.start_at >= self.end_at:
            raise ValueError("Reservation must end after it starts")

    @property
    def duration_hours(self) -> int:
        return len(self.hours)

    @property
    def is_booked(self) -> bool:
        return self.status == ReservationStatus.BOOKED

    @classmethod
    def book(
        cls,
        *,
        yacht_id: int,
        day: date,
        hours: HourRange,
        start_at: datetime,
        end_at: datetime,
        shift_fit: ShiftFit,
        source: ReservationSource,
        attendee: Attendee | None,
        notes: str,
        actor: Actor,
    ) -> 'Reservation':
        """New booked reservation. Events: ReservationCreated"""
        from apps.bookings.domain.events import ReservationCreated

        reservation = cls(
            booking_uid=generate_booking_uid(),
            yacht_id=yacht_id,
            day=day,
            hours=hours,
            start_at=start_at,
            end_at=end_at,
            shift_fit=shift_fit,
            source=source,
            attendee=attendee,
            notes=notes,
            created_by_id=actor.user_id,
        )
        reservation.add_event(ReservationCreated(
            aggregate_id=reservation.id,
            booking_uid=reservation.booking_uid,
            yacht_id=yacht_id,
            start_at=start_at,
            end_at=end_at,
            source=source.value,
            actor=actor.label,
        ))
        return reservation

    def reschedule(
        self,
        *,
        day: date,
        hours: HourRange,
        start_at: datetime,
        end_at: datetime,
        shift_fit: ShiftFit,
        actor: Actor,
    ) -> ChangeMode:
        """
        Move to a new slot under a new uid (BOOKED -> BOOKED)

        The old uid is appended to booking_uid_history.
        Events: ReservationRescheduled
        """
        if not self.is_booked:
            raise PolicyViolation(
                f"Reservation {self.booking_uid} is {self.status.value} and cannot be rescheduled"
            )

        from apps.bookings.domain.events import ReservationRescheduled

        change_mode = (
            ChangeMode.SAME_DURATION if len(hours) == self.duration_hours
            else ChangeMode.DURATION_CHANGE
        )
        previous_uid = self.booking_uid
        previous_start_at, previous_end_at = self.start_at, self.end_at

        self.booking_uid_history = [*self.booking_uid_history, previous_uid]
        self.booking_uid = generate_booking_uid()
        self.day = day
        self.hours = hours
        self.start_at = start_at
        self.end_at = end_at
        self.shift_fit = shift_fit
        self.touch()

        self.add_event(ReservationRescheduled(
            aggregate_id=self.id,
            booking_uid=self.booking_uid,
            previous_booking_uid=previous_uid,
            yacht_id=self.yacht_id,
            previous_start_at=previous_start_at,
            previous_end_at=previous_end_at,
            start_at=start_at,
            end_at=end_at,
            change_mode=change_mode.value,
            actor=actor.label,
            booking_uid_history=list(self.booking_uid_history),
        ))
        return change_mode

    def cancel(self, reason: str, actor: Actor) -> bool:
        """
        Cancel (BOOKED -> CANCELLED)

        Returns False, without events, when already cancelled.
        Events: ReservationCancelled
        """
        if not self.is_booked:
            return False

        from apps.bookings.domain.events import ReservationCancelled

        self.status = ReservationStatus.CANCELLED
        self.cancellation_reason = reason
        self.cancelled_at = utcnow()
        self.touch()

        self.add_event(ReservationCancelled(
            aggregate_id=self.id,
            booking_uid=self.booking_uid,
            yacht_id=self.yacht_id,
            reason=reason,
            actor=actor.label,
        ))
        return True
