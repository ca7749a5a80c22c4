"""Reservation store backed by the Django ORM.

Maps Reservation rows to domain aggregates, loads yacht calendars under a
row lock and turns database failures into booking errors.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Iterator, List
from zoneinfo import ZoneInfo

from django.db import IntegrityError, InterfaceError, OperationalError, transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from apps.bookings.domain.calendar import BookedSlot, YachtCalendar
from apps.bookings.domain.entities import (
    Actor,
    Attendee,
    Reservation,
    ReservationSource,
    ReservationStatus,
)
from apps.bookings.domain.exceptions import NotFound, ServiceUnavailable, SlotConflict
from apps.bookings.domain.localtime import booking_timezone, hour_range_on_day, local_day_bounds, to_local
from apps.bookings.domain.policy import PolicyConfig, ShiftFit, get_policy
from apps.bookings.models import Reservation as ReservationModel
from apps.bookings.models import ReservationChangeLog
from apps.yachts.models import Yacht

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT = "reservation_no_overlap"


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection(queryset.db).in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


@contextmanager
def store_errors() -> Iterator[None]:
    """
    Translate database failures into booking errors.

    Overlap constraint violations become SlotConflict; timeouts and lost
    connections become ServiceUnavailable. Other integrity errors propagate.
    """
    try:
        yield
    except IntegrityError as exc:
        if OVERLAP_CONSTRAINT in str(exc):
            raise SlotConflict() from exc
        raise
    except (OperationalError, InterfaceError) as exc:
        logger.warning(f"Reservation store unavailable: {exc}")
        raise ServiceUnavailable() from exc


class DjangoReservationStore:
    """
    ReservationStore on top of the ORM

    Writes are expected to run inside a DjangoUnitOfWork; reads may run
    anywhere and take no locks.
    """

    def __init__(self, policy: PolicyConfig | None = None, tz: ZoneInfo | None = None):
        self._policy = policy
        self._tz = tz

    @property
    def policy(self) -> PolicyConfig:
        return self._policy or get_policy()

    @property
    def tz(self) -> ZoneInfo:
        return self._tz or booking_timezone()

    # ----- yachts -----

    def get_yacht(self, slug: str, *, public: bool = False, lock: bool = False) -> Yacht:
        """
        Bookable yacht by slug

        Raises:
            NotFound: unknown slug, yacht not on the hourly policy, or (public)
                not open to anonymous bookings
        """
        with store_errors():
            queryset = Yacht.objects.filter(slug=slug)
            if lock:
                queryset = _lock_queryset_if_possible(queryset)
            yacht = queryset.first()

        if yacht is None:
            raise NotFound(f"Yacht {slug!r} not found", slug=slug)
        if not yacht.uses_hourly_policy:
            raise NotFound(f"Yacht {slug!r} is not eligible for hourly booking", slug=slug)
        if public and not yacht.booking_public_enabled:
            raise NotFound(f"Yacht {slug!r} is not open for public booking", slug=slug)
        return yacht

    # ----- calendars -----

    def _booked_rows(self, yacht_id: int, start: datetime, end: datetime):
        """Booked rows whose buffer-expanded interval reaches into [start, end)."""
        buffer = timedelta(hours=self.policy.inter_booking_buffer_hours)
        return (
            ReservationModel.objects
            .filter(
                yacht_id=yacht_id,
                status=ReservationModel.Status.BOOKED,
                start_at__lt=end + buffer,
                end_at__gt=start - buffer,
            )
            .order_by("start_at")
        )

    def booked_between(self, yacht_id: int, start: datetime, end: datetime) -> List[ReservationModel]:
        with store_errors():
            return list(self._booked_rows(yacht_id, start, end))

    def slots_for_day(self, rows: List[ReservationModel], day: date) -> List[BookedSlot]:
        """Booked slots of `rows` that can affect trips on `day`."""
        start, end = local_day_bounds(day, self.tz)
        buffer = timedelta(hours=self.policy.inter_booking_buffer_hours)
        return [
            BookedSlot(
                booking_uid=row.booking_uid,
                hours=hour_range_on_day(row.start_at, row.end_at, day, self.tz),
            )
            for row in rows
            if row.start_at < end + buffer and row.end_at > start - buffer
        ]

    def load_calendar(self, yacht: Yacht, day: date, *, lock: bool = False) -> YachtCalendar:
        """
        Fresh calendar of `yacht` around `day`

        With lock=True the yacht row is locked first, so concurrent
        mutations of the same yacht queue up behind this transaction.
        """
        with store_errors():
            if lock:
                list(_lock_queryset_if_possible(Yacht.objects.filter(pk=yacht.pk)).values_list("pk", flat=True))
            start, end = local_day_bounds(day, self.tz)
            rows = list(self._booked_rows(yacht.pk, start, end))

        return self.calendar_from_rows(yacht, day, rows)

    def calendar_from_rows(self, yacht: Yacht, day: date, rows: List[ReservationModel]) -> YachtCalendar:
        """Calendar of `day` built from rows already read, e.g. a whole month."""
        return YachtCalendar(
            yacht_id=yacht.pk,
            day=day,
            policy=self.policy,
            slots=self.slots_for_day(rows, day),
            closed=yacht.is_closed_on(day),
        )

    # ----- reservations -----

    def _to_entity(self, row: ReservationModel) -> Reservation:
        local_start = to_local(row.start_at, self.tz)
        day = local_start.date()
        attendee = None
        if row.guest_name and row.guest_email:
            attendee = Attendee(name=row.guest_name, email=row.guest_email, phone=row.guest_phone)
        return Reservation(
            pk=row.pk,
            booking_uid=row.booking_uid,
            yacht_id=row.yacht_id,
            day=day,
            hours=hour_range_on_day(row.start_at, row.end_at, day, self.tz),
            start_at=row.start_at,
            end_at=row.end_at,
            status=ReservationStatus(row.status),
            source=ReservationSource(row.source),
            shift_fit=ShiftFit(row.shift_fit),
            attendee=attendee,
            notes=row.notes,
            booking_uid_history=list(row.booking_uid_history or []),
            cancellation_reason=row.cancellation_reason,
            cancelled_at=row.cancelled_at,
            created_by_id=row.created_by_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _apply(self, row: ReservationModel, reservation: Reservation) -> None:
        row.booking_uid = reservation.booking_uid
        row.booking_uid_history = list(reservation.booking_uid_history)
        row.yacht_id = reservation.yacht_id
        row.start_at = reservation.start_at
        row.end_at = reservation.end_at
        row.status = reservation.status.value
        row.source = reservation.source.value
        row.shift_fit = reservation.shift_fit.value
        row.notes = reservation.notes
        row.cancellation_reason = reservation.cancellation_reason
        row.cancelled_at = reservation.cancelled_at
        if reservation.attendee is not None:
            row.guest_name = reservation.attendee.name
            row.guest_email = reservation.attendee.email
            row.guest_phone = reservation.attendee.phone

    def get(self, booking_uid: str, *, yacht: Yacht | None = None, lock: bool = False) -> Reservation:
        """
        Reservation by current uid

        Raises:
            NotFound: unknown uid, or it belongs to another yacht
        """
        with store_errors():
            queryset = ReservationModel.objects.filter(booking_uid=booking_uid)
            if lock:
                queryset = _lock_queryset_if_possible(queryset)
            row = queryset.first()

        if row is None or (yacht is not None and row.yacht_id != yacht.pk):
            raise NotFound(f"Booking {booking_uid!r} not found", booking_uid=booking_uid)
        return self._to_entity(row)

    def add(self, reservation: Reservation) -> Reservation:
        """Insert; fails with SlotConflict if the overlap constraint rejects it."""
        row = ReservationModel(block_scope=ReservationModel.BlockScope.CUSTOM, created_by_id=reservation.created_by_id)
        self._apply(row, reservation)
        with store_errors():
            with transaction.atomic():
                row.save(force_insert=True)
        reservation.pk = row.pk
        reservation.created_at = row.created_at
        return reservation

    def save(self, reservation: Reservation) -> Reservation:
        if reservation.pk is None:
            raise ValueError("Reservation has not been stored yet")
        with store_errors():
            row = ReservationModel.objects.get(pk=reservation.pk)
            self._apply(row, reservation)
            with transaction.atomic():
                row.save()
        return reservation

    def append_audit(self, reservation: Reservation, action: str, actor: Actor, payload: dict) -> ReservationChangeLog:
        with store_errors():
            return ReservationChangeLog.objects.create(
                reservation_id=reservation.pk,
                booking_uid=reservation.booking_uid,
                action=action,
                actor_id=actor.user_id,
                actor_label=actor.label,
                payload=payload,
            )

