"""
Reservation Command Handlers

Use cases that change the reservation store. Each runs as one unit of
work: policy check, fresh calendar read under a yacht row lock, conflict
check, write and audit entry all commit together or not at all.

Commands:
- CreateBookingCommand: accept a new trip
- RescheduleBookingCommand: move a booked trip (admin only)
- CancelBookingCommand: cancel a trip, idempotently (admin only)
- UpdateReservationDetailsCommand: edit guest contact fields and notes
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict
import logging

from shared.application.uow import DjangoUnitOfWork
from apps.bookings.domain.entities import (
    Actor,
    Attendee,
    Reservation,
    ReservationSource,
    ReservationStatus,
)
from apps.bookings.domain.exceptions import Forbidden, PolicyViolation
from apps.bookings.domain.localtime import booking_timezone, local_instant
from apps.bookings.domain.policy import PolicyConfig, classify_shift, get_policy, validate_slot
from apps.bookings.models import ReservationChangeLog

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to book a trip

    duration_hours and start_hour are passed through as received so the
    policy check sees exactly what the client sent.
    """
    yacht_slug: str
    date: date
    duration_hours: Any
    start_hour: Any
    attendee: Attendee | None = None
    notes: str = ''
    source: ReservationSource = ReservationSource.PUBLIC
    actor: Actor = field(default_factory=Actor.anonymous)
    public: bool = False


@dataclass
class RescheduleBookingCommand:
    booking_uid: str
    yacht_slug: str
    date: date
    duration_hours: Any
    start_hour: Any
    actor: Actor = field(default_factory=Actor.anonymous)


@dataclass
class CancelBookingCommand:
    booking_uid: str
    yacht_slug: str
    reason: str
    actor: Actor = field(default_factory=Actor.anonymous)


@dataclass
class UpdateReservationDetailsCommand:
    booking_uid: str
    changes: Dict[str, str]
    actor: Actor = field(default_factory=Actor.anonymous)


@dataclass
class BookingResult:
    booking_uid: str
    status: str
    reservation: Reservation
    previous_booking_uid: str | None = None
    change_mode: str | None = None
    changed: bool = True

    def to_dict(self) -> dict:
        data = {'booking_uid': self.booking_uid, 'status': self.status}
        if self.previous_booking_uid:
            data['previous_booking_uid'] = self.previous_booking_uid
        if self.change_mode:
            data['change_mode'] = self.change_mode
        return data


# ===== Command Handlers =====

class _MutationHandler:
    """Shared wiring: store, policy and timezone"""

    def __init__(self, store, policy: PolicyConfig | None = None, tz=None):
        self.store = store
        self._policy = policy
        self._tz = tz

    @property
    def policy(self) -> PolicyConfig:
        return self._policy or get_policy()

    @property
    def tz(self):
        return self._tz or booking_timezone()

    def _trip_instants(self, day: date, trip):
        return local_instant(day, trip.start_hour, self.tz), local_instant(day, trip.end_hour, self.tz)


class CreateBookingHandler(_MutationHandler):
    """
    Handler for CreateBooking

    1. Validate (duration, start) against the policy, before any store access
    2. Open a unit of work and lock the yacht row
    3. Re-read the day's booked trips and check the buffer-expanded conflict
    4. Insert; the PostgreSQL exclusion constraint rejects a racing insert
    5. Append the audit entry and commit; events publish after commit
    """

    def handle(self, command: CreateBookingCommand) -> BookingResult:
        trip = validate_slot(self.policy, command.duration_hours, command.start_hour)
        logger.info(
            f"Creating booking for yacht {command.yacht_slug} on {command.date} "
            f"{trip} ({command.source.value})"
        )

        with DjangoUnitOfWork() as uow:
            yacht = self.store.get_yacht(command.yacht_slug, public=command.public)
            if yacht.is_closed_on(command.date):
                raise PolicyViolation(
                    f"Booking date is before this yacht's go-live date "
                    f"({yacht.booking_v2_live_from.isoformat()})"
                )

            calendar = self.store.load_calendar(yacht, command.date, lock=True)
            start_at, end_at = self._trip_instants(command.date, trip)
            reservation = Reservation.book(
                yacht_id=yacht.pk,
                day=command.date,
                hours=trip,
                start_at=start_at,
                end_at=end_at,
                shift_fit=classify_shift(self.policy, trip.start_hour, trip.end_hour),
                source=command.source,
                attendee=command.attendee,
                notes=command.notes,
                actor=command.actor,
            )
            calendar.allocate(reservation.booking_uid, trip)

            self.store.add(reservation)
            self.store.append_audit(
                reservation,
                ReservationChangeLog.Action.CREATE,
                command.actor,
                {
                    'yacht_slug': yacht.slug,
                    'date': command.date.isoformat(),
                    'start_hour': trip.start_hour,
                    'duration_hours': len(trip),
                    'shift_fit': reservation.shift_fit.value,
                    'source': command.source.value,
                    'policy_version': self.policy.version,
                },
            )
            uow.collect_events(reservation)

        logger.info(f"Booking created: {reservation.booking_uid}")
        return BookingResult(
            booking_uid=reservation.booking_uid,
            status=reservation.status.value,
            reservation=reservation,
        )


class RescheduleBookingHandler(_MutationHandler):
    """
    Handler for RescheduleBooking

    The moved booking's own slot is ignored by the conflict check. On
    conflict nothing is written and the original booking stays as it was.
    """

    def handle(self, command: RescheduleBookingCommand) -> BookingResult:
        if not command.actor.is_admin:
            raise Forbidden("Only admins can reschedule bookings")

        trip = validate_slot(self.policy, command.duration_hours, command.start_hour)
        logger.info(
            f"Rescheduling booking {command.booking_uid} on yacht {command.yacht_slug} "
            f"to {command.date} {trip}"
        )

        with DjangoUnitOfWork() as uow:
            yacht = self.store.get_yacht(command.yacht_slug)
            if yacht.is_closed_on(command.date):
                raise PolicyViolation("New date is before this yacht's go-live date")

            calendar = self.store.load_calendar(yacht, command.date, lock=True)
            reservation = self.store.get(command.booking_uid, yacht=yacht, lock=True)
            if not reservation.is_booked:
                raise PolicyViolation(
                    f"Booking {command.booking_uid} is {reservation.status.value} and cannot be rescheduled"
                )

            previous = {
                'date': reservation.day.isoformat(),
                'start_hour': reservation.hours.start_hour,
                'duration_hours': reservation.duration_hours,
            }
            previous_uid = reservation.booking_uid
            start_at, end_at = self._trip_instants(command.date, trip)
            change_mode = reservation.reschedule(
                day=command.date,
                hours=trip,
                start_at=start_at,
                end_at=end_at,
                shift_fit=classify_shift(self.policy, trip.start_hour, trip.end_hour),
                actor=command.actor,
            )
            calendar.allocate(reservation.booking_uid, trip, exclude_uid=previous_uid)

            self.store.save(reservation)
            self.store.append_audit(
                reservation,
                ReservationChangeLog.Action.RESCHEDULE,
                command.actor,
                {
                    'previous_booking_uid': previous_uid,
                    'change_mode': change_mode.value,
                    'from': previous,
                    'to': {
                        'date': command.date.isoformat(),
                        'start_hour': trip.start_hour,
                        'duration_hours': len(trip),
                    },
                },
            )
            uow.collect_events(reservation)

        logger.info(f"Booking {previous_uid} rescheduled as {reservation.booking_uid}")
        return BookingResult(
            booking_uid=reservation.booking_uid,
            status='rescheduled',
            reservation=reservation,
            previous_booking_uid=previous_uid,
            change_mode=change_mode.value,
        )


class CancelBookingHandler(_MutationHandler):
    """Handler for CancelBooking; a second cancel succeeds without writing"""

    def handle(self, command: CancelBookingCommand) -> BookingResult:
        if not command.actor.is_admin:
            raise Forbidden("Only admins can cancel bookings")
        reason = (command.reason or '').strip()
        if not reason:
            raise PolicyViolation("A cancellation reason is required")

        logger.info(f"Cancelling booking {command.booking_uid}, reason: {reason}")

        with DjangoUnitOfWork() as uow:
            yacht = self.store.get_yacht(command.yacht_slug)
            reservation = self.store.get(command.booking_uid, yacht=yacht, lock=True)

            changed = reservation.cancel(reason, command.actor)
            if changed:
                self.store.save(reservation)
                self.store.append_audit(
                    reservation,
                    ReservationChangeLog.Action.CANCEL,
                    command.actor,
                    {'reason': reason},
                )
                uow.collect_events(reservation)

        if changed:
            logger.info(f"Booking {reservation.booking_uid} cancelled")
        else:
            logger.info(f"Booking {reservation.booking_uid} was already cancelled")
        return BookingResult(
            booking_uid=reservation.booking_uid,
            status=ReservationStatus.CANCELLED.value,
            reservation=reservation,
            changed=changed,
        )


class UpdateReservationDetailsHandler(_MutationHandler):
    """Handler for guest contact and notes edits by admins or staff"""

    editable_fields = ('guest_name', 'guest_email', 'guest_phone', 'notes')

    def handle(self, command: UpdateReservationDetailsCommand) -> BookingResult:
        if not (command.actor.is_admin or command.actor.is_staff):
            raise Forbidden("Only admins or staff can edit reservations")

        unknown = set(command.changes) - set(self.editable_fields)
        if unknown:
            raise PolicyViolation(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        with DjangoUnitOfWork():
            reservation = self.store.get(command.booking_uid, lock=True)
            attendee = reservation.attendee
            name = command.changes.get('guest_name', attendee.name if attendee else '')
            email = command.changes.get('guest_email', attendee.email if attendee else '')
            phone = command.changes.get('guest_phone', attendee.phone if attendee else '')
            if name or email or phone:
                if not (name and email):
                    raise PolicyViolation("Guest name and email are required to store contact details")
                reservation.attendee = Attendee(name=name, email=email, phone=phone)
            if 'notes' in command.changes:
                reservation.notes = command.changes['notes']
            reservation.touch()

            self.store.save(reservation)
            self.store.append_audit(
                reservation,
                ReservationChangeLog.Action.UPDATE,
                command.actor,
                {'fields': sorted(command.changes)},
            )

        return BookingResult(
            booking_uid=reservation.booking_uid,
            status=reservation.status.value,
            reservation=reservation,
        )
