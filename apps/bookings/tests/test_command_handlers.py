from datetime import date, timedelta
from zoneinfo import ZoneInfo

import pytest

from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CreateBookingCommand,
    CreateBookingHandler,
    RescheduleBookingCommand,
    RescheduleBookingHandler,
    UpdateReservationDetailsCommand,
    UpdateReservationDetailsHandler,
)
from apps.bookings.application.queries import GetAvailabilityHandler, GetAvailabilityQuery
from apps.bookings.domain.entities import Actor, ReservationSource
from apps.bookings.domain.exceptions import Forbidden, NotFound, PolicyViolation, SlotConflict
from apps.bookings.domain.localtime import local_instant
from apps.bookings.models import Reservation, ReservationChangeLog
from apps.yachts.models import Yacht

from .conftest import BOOKING_DAY


@pytest.fixture
def create(store, yacht, attendee):
    handler = CreateBookingHandler(store)

    def _create(duration_hours, start_hour, day=BOOKING_DAY, **kwargs):
        command = CreateBookingCommand(
            yacht_slug=kwargs.pop("slug", yacht.slug),
            date=day,
            duration_hours=duration_hours,
            start_hour=start_hour,
            attendee=kwargs.pop("attendee", attendee),
            **kwargs,
        )
        return handler.handle(command)

    return _create


@pytest.fixture
def reschedule(store, yacht, admin_actor):
    handler = RescheduleBookingHandler(store)

    def _reschedule(booking_uid, duration_hours, start_hour, day=BOOKING_DAY, actor=admin_actor):
        return handler.handle(RescheduleBookingCommand(
            booking_uid=booking_uid,
            yacht_slug=yacht.slug,
            date=day,
            duration_hours=duration_hours,
            start_hour=start_hour,
            actor=actor,
        ))

    return _reschedule


@pytest.fixture
def cancel(store, yacht, admin_actor):
    handler = CancelBookingHandler(store)

    def _cancel(booking_uid, reason="Weather", actor=admin_actor, slug=None):
        return handler.handle(CancelBookingCommand(
            booking_uid=booking_uid,
            yacht_slug=slug or yacht.slug,
            reason=reason,
            actor=actor,
        ))

    return _cancel


@pytest.mark.django_db
def test_create_booking_persists_reservation_and_audit(create, policy):
    result = create(4, 9)

    row = Reservation.objects.get(booking_uid=result.booking_uid)
    assert result.status == "booked"
    assert result.booking_uid.startswith("YB")
    assert row.duration_hours == 4
    assert row.shift_fit == Reservation.ShiftFit.MORNING
    assert row.guest_email == "ana@example.com"
    assert row.blocked_until == row.end_at + timedelta(hours=policy.inter_booking_buffer_hours)

    entry = row.change_log.get()
    assert entry.action == ReservationChangeLog.Action.CREATE
    assert entry.payload["start_hour"] == 9
    assert entry.payload["duration_hours"] == 4
    assert entry.payload["policy_version"] == "v3"


@pytest.mark.django_db
def test_create_afternoon_trip_after_buffer(create):
    create(4, 9)

    result = create(3, 15)

    assert result.status == "booked"
    assert Reservation.objects.filter(status=Reservation.Status.BOOKED).count() == 2


@pytest.mark.django_db
def test_create_inside_buffer_is_slot_conflict(create):
    first = create(4, 9)

    with pytest.raises(SlotConflict) as exc_info:
        create(3, 6)

    assert exc_info.value.context["conflicting"] == [first.booking_uid]
    assert Reservation.objects.count() == 1


@pytest.mark.django_db
def test_slot_shown_as_free_is_rejected_once_taken(create, store, yacht):
    availability = GetAvailabilityHandler(store).handle(
        GetAvailabilityQuery(yacht_slug=yacht.slug, month="2031-03")
    )
    assert availability.days[BOOKING_DAY.isoformat()].starts_for(3)[-1] == 15

    create(5, 12)

    with pytest.raises(SlotConflict):
        create(3, 15)


@pytest.mark.django_db
@pytest.mark.parametrize("duration,start", [(4, 10), (3.5, 6), (2, 6), (9, 6), (3, 11), (3, 9.5)])
def test_policy_violations_never_reach_the_store(create, duration, start):
    with pytest.raises(PolicyViolation):
        create(duration, start)

    assert Reservation.objects.count() == 0


@pytest.mark.django_db
def test_unknown_yacht_is_not_found(create):
    with pytest.raises(NotFound):
        create(3, 6, slug="ghost-ship")


@pytest.mark.django_db
def test_legacy_yacht_is_not_bookable(create):
    legacy = Yacht.objects.create(name="Old Timer", booking_mode=Yacht.BookingMode.LEGACY_EMBED)

    with pytest.raises(NotFound):
        create(3, 6, slug=legacy.slug)


@pytest.mark.django_db
def test_public_booking_requires_public_yacht(create):
    private = Yacht.objects.create(name="Private Charter", booking_public_enabled=False)

    with pytest.raises(NotFound):
        create(3, 6, slug=private.slug, public=True)

    result = create(3, 6, slug=private.slug, source=ReservationSource.INTERNAL)
    assert Reservation.objects.get(booking_uid=result.booking_uid).source == "internal"


@pytest.mark.django_db
def test_dates_before_go_live_are_closed(create, yacht):
    yacht.booking_v2_live_from = BOOKING_DAY + timedelta(days=5)
    yacht.save()

    with pytest.raises(PolicyViolation):
        create(3, 6)

    assert create(3, 6, day=BOOKING_DAY + timedelta(days=5)).status == "booked"


@pytest.mark.django_db
def test_reschedule_issues_new_uid_and_keeps_history(create, reschedule):
    original = create(3, 6)

    result = reschedule(original.booking_uid, 3, 15)

    assert result.status == "rescheduled"
    assert result.previous_booking_uid == original.booking_uid
    assert result.booking_uid != original.booking_uid
    assert result.change_mode == "same_duration"

    row = Reservation.objects.get()
    assert row.booking_uid == result.booking_uid
    assert row.booking_uid_history == [original.booking_uid]
    assert row.change_log.filter(action=ReservationChangeLog.Action.RESCHEDULE).count() == 1


@pytest.mark.django_db
def test_reschedule_twice_accumulates_history(create, reschedule):
    original = create(3, 6)
    moved = reschedule(original.booking_uid, 5, 10, day=BOOKING_DAY + timedelta(days=1))

    again = reschedule(moved.booking_uid, 3, 15)

    assert moved.change_mode == "duration_change"
    assert Reservation.objects.get().booking_uid_history == [original.booking_uid, moved.booking_uid]
    assert again.previous_booking_uid == moved.booking_uid


@pytest.mark.django_db
def test_reschedule_may_overlap_its_own_slot(create, reschedule):
    original = create(4, 9)

    result = reschedule(original.booking_uid, 4, 8)

    assert result.status == "rescheduled"


@pytest.mark.django_db
def test_reschedule_conflict_leaves_booking_untouched(create, reschedule):
    morning = create(3, 6)
    create(3, 15)

    with pytest.raises(SlotConflict):
        reschedule(morning.booking_uid, 3, 15)

    row = Reservation.objects.get(booking_uid=morning.booking_uid)
    assert row.booking_uid_history == []
    assert row.change_log.count() == 1


@pytest.mark.django_db
def test_reschedule_requires_admin(create, reschedule, staff_actor):
    original = create(3, 6)

    with pytest.raises(Forbidden):
        reschedule(original.booking_uid, 3, 15, actor=staff_actor)


@pytest.mark.django_db
def test_reschedule_unknown_booking(reschedule):
    with pytest.raises(NotFound):
        reschedule("YB-UNKNOWN", 3, 15)


@pytest.mark.django_db
def test_cancelled_booking_cannot_be_rescheduled(create, reschedule, cancel):
    original = create(3, 6)
    cancel(original.booking_uid)

    with pytest.raises(PolicyViolation):
        reschedule(original.booking_uid, 3, 15)


@pytest.mark.django_db
def test_cancel_is_idempotent(create, cancel):
    original = create(3, 6)

    first = cancel(original.booking_uid, reason="Engine trouble")
    second = cancel(original.booking_uid, reason="Engine trouble")

    assert first.status == second.status == "cancelled"
    assert first.changed is True
    assert second.changed is False
    row = Reservation.objects.get()
    assert row.cancellation_reason == "Engine trouble"
    assert row.cancelled_at is not None
    assert row.change_log.filter(action=ReservationChangeLog.Action.CANCEL).count() == 1


@pytest.mark.django_db
def test_cancel_frees_the_slot(create, cancel):
    original = create(4, 9)
    cancel(original.booking_uid)

    assert create(3, 10).status == "booked"


@pytest.mark.django_db
def test_cancel_requires_reason_and_admin(create, cancel, staff_actor):
    original = create(3, 6)

    with pytest.raises(PolicyViolation):
        cancel(original.booking_uid, reason="  ")
    with pytest.raises(Forbidden):
        cancel(original.booking_uid, actor=staff_actor)
    with pytest.raises(Forbidden):
        cancel(original.booking_uid, actor=Actor.anonymous())


@pytest.mark.django_db
def test_cancel_on_another_yacht_is_not_found(create, cancel):
    original = create(3, 6)
    other = Yacht.objects.create(name="Second Wind")

    with pytest.raises(NotFound):
        cancel(original.booking_uid, slug=other.slug)


@pytest.mark.django_db
def test_staff_can_edit_guest_details(create, store, staff_actor):
    original = create(3, 6)
    handler = UpdateReservationDetailsHandler(store)

    handler.handle(UpdateReservationDetailsCommand(
        booking_uid=original.booking_uid,
        changes={"notes": "Birthday cake on board", "guest_phone": "+52 669 111 1111"},
        actor=staff_actor,
    ))

    row = Reservation.objects.get()
    assert row.notes == "Birthday cake on board"
    assert row.guest_phone == "+52 669 111 1111"
    assert row.guest_name == "Ana Ruiz"
    assert row.change_log.filter(action=ReservationChangeLog.Action.UPDATE).count() == 1


@pytest.mark.django_db
def test_edit_rules(create, store, staff_actor):
    original = create(3, 6)
    handler = UpdateReservationDetailsHandler(store)

    with pytest.raises(Forbidden):
        handler.handle(UpdateReservationDetailsCommand(
            booking_uid=original.booking_uid,
            changes={"notes": "x"},
            actor=Actor(user_id=None, label="guest"),
        ))
    with pytest.raises(PolicyViolation):
        handler.handle(UpdateReservationDetailsCommand(
            booking_uid=original.booking_uid,
            changes={"start_at": "2031-03-10T15:00:00"},
            actor=staff_actor,
        ))


@pytest.mark.django_db
def test_month_availability(create, store, yacht):
    create(4, 9)

    availability = GetAvailabilityHandler(store).handle(
        GetAvailabilityQuery(yacht_slug=yacht.slug, month="2031-03")
    )
    data = availability.to_dict()

    assert len(data["days"]) == 31
    assert data["month"] == "2031-03"
    assert data["timezone"] == "America/Mazatlan"
    assert data["yacht"]["slug"] == yacht.slug
    assert data["constraints"]["policy_version"] == "v3"

    booked_day = data["days"]["2031-03-10"]
    assert booked_day["valid_starts_by_duration"]["3"] == [15]
    assert booked_day["am"] == "booked"
    assert booked_day["pm"] == "available"
    assert data["days"]["2031-03-11"]["full_open"] is True


@pytest.mark.django_db
def test_availability_closes_days_before_go_live(store, yacht):
    yacht.booking_v2_live_from = date(2031, 3, 15)
    yacht.save()

    days = GetAvailabilityHandler(store).handle(
        GetAvailabilityQuery(yacht_slug=yacht.slug, month="2031-03")
    ).days

    assert days["2031-03-14"].closed is True
    assert days["2031-03-15"].closed is False


@pytest.mark.django_db
def test_availability_rejects_bad_month(store, yacht):
    with pytest.raises(PolicyViolation):
        GetAvailabilityHandler(store).handle(GetAvailabilityQuery(yacht_slug=yacht.slug, month="2031-13"))


@pytest.mark.django_db
def test_phone_alone_is_rejected_without_guest(create, store, staff_actor):
    original = create(3, 6, attendee=None)
    handler = UpdateReservationDetailsHandler(store)

    with pytest.raises(PolicyViolation):
        handler.handle(UpdateReservationDetailsCommand(
            booking_uid=original.booking_uid,
            changes={"guest_phone": "+52 669 222 2222"},
            actor=staff_actor,
        ))
    row = Reservation.objects.get()
    assert row.guest_phone == ""
    assert not row.change_log.filter(action=ReservationChangeLog.Action.UPDATE).exists()

    handler.handle(UpdateReservationDetailsCommand(
        booking_uid=original.booking_uid,
        changes={"guest_name": "Luis Ortega", "guest_email": "luis@example.com", "guest_phone": "+52 669 222 2222"},
        actor=staff_actor,
    ))
    row.refresh_from_db()
    assert (row.guest_name, row.guest_email, row.guest_phone) == ("Luis Ortega", "luis@example.com", "+52 669 222 2222")


@pytest.fixture
def legacy_half_day(yacht):
    tz = ZoneInfo("America/Mazatlan")
    return Reservation.objects.create(
        booking_uid="LEGACY-AM-1",
        yacht=yacht,
        start_at=local_instant(BOOKING_DAY, 8, tz),
        end_at=local_instant(BOOKING_DAY, 12, tz),
        source=Reservation.Source.LEGACY,
        block_scope=Reservation.BlockScope.HALF_AM,
    )


@pytest.mark.django_db
def test_legacy_half_day_blocks_its_buffered_hours(legacy_half_day, store, yacht):
    day = GetAvailabilityHandler(store).handle(
        GetAvailabilityQuery(yacht_slug=yacht.slug, month="2031-03")
    ).days[BOOKING_DAY.isoformat()]

    # 08:00-12:00 plus two hours either side leaves only 15:00-18:00
    assert day.open_hours == [15, 16, 17]
    assert day.starts_for(3) == [15]
    assert all(not day.starts_for(duration) for duration in (4, 5, 6, 7, 8))
    assert day.to_dict()["am"] == "booked"


@pytest.mark.django_db
def test_legacy_half_day_conflicts_with_new_trips(legacy_half_day, create):
    for duration, start in [(3, 10), (5, 13), (3, 6)]:
        with pytest.raises(SlotConflict):
            create(duration, start)

    accepted = create(3, 15)

    assert accepted.status == "booked"
    assert Reservation.objects.filter(status=Reservation.Status.BOOKED).count() == 2
