from datetime import date

import pytest

from apps.bookings.application.command_handlers import CancelBookingCommand, CreateBookingCommand
from apps.bookings.application.queries import GetAvailabilityQuery
from apps.bookings.bootstrap import bootstrap
from apps.bookings.domain.entities import Reservation, ReservationSource
from apps.bookings.domain.events import ReservationCancelled
from apps.bookings.domain.exceptions import BookingError, PolicyViolation
from apps.bookings.domain.localtime import booking_timezone, local_instant
from apps.bookings.domain.policy import ShiftFit
from shared.application.message_bus import MessageBus, message_bus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import HourRange


def test_global_bus_is_wired_on_startup():
    for command_type in (GetAvailabilityQuery, CreateBookingCommand, CancelBookingCommand):
        assert message_bus.has_command_handler(command_type)
    assert message_bus.expected_errors == (BookingError,)


def test_bootstrap_is_repeatable():
    bus = MessageBus()

    bootstrap(bus)
    bootstrap(bus)

    assert len(bus._event_handlers[ReservationCancelled]) == 1


def test_duplicate_command_handler_is_rejected():
    bus = MessageBus()
    bus.register_command_handler(CreateBookingCommand, lambda command: None)

    with pytest.raises(ValueError):
        bus.register_command_handler(CreateBookingCommand, lambda command: None)


def test_expected_errors_are_reraised():
    bus = MessageBus(expected_errors=(BookingError,))

    def reject(command):
        raise PolicyViolation("nope")

    bus.register_command_handler(GetAvailabilityQuery, reject)

    with pytest.raises(PolicyViolation):
        bus.handle_command(GetAvailabilityQuery(yacht_slug="sea-breeze", month="2031-03"))


def test_failing_subscriber_does_not_stop_others():
    bus = MessageBus()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    bus.register_event_handler(ReservationCancelled, broken)
    bus.register_event_handler(ReservationCancelled, seen.append)
    event = ReservationCancelled(booking_uid="YB1", yacht_id=1, reason="Weather", actor="captain")

    bus.publish_events([event])

    assert seen == [event]


@pytest.mark.django_db
def test_events_publish_only_after_commit(django_capture_on_commit_callbacks, create_and_cancel):
    bus = MessageBus()
    seen = []
    bus.register_event_handler(ReservationCancelled, seen.append)

    with django_capture_on_commit_callbacks(execute=True):
        with DjangoUnitOfWork(bus=bus) as uow:
            reservation = create_and_cancel()
            uow.collect_events(reservation)
        assert seen == []

    assert [event.booking_uid for event in seen] == [reservation.booking_uid]


@pytest.mark.django_db
def test_rolled_back_events_are_discarded(django_capture_on_commit_callbacks, create_and_cancel):
    bus = MessageBus()
    seen = []
    bus.register_event_handler(ReservationCancelled, seen.append)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(RuntimeError):
            with DjangoUnitOfWork(bus=bus) as uow:
                uow.collect_events(create_and_cancel())
                raise RuntimeError("store failed")

    assert callbacks == []
    assert seen == []


@pytest.fixture
def create_and_cancel(admin_actor):
    def _make():
        day = date(2031, 3, 10)
        tz = booking_timezone()
        reservation = Reservation.book(
            yacht_id=1,
            day=day,
            hours=HourRange(6, 9),
            start_at=local_instant(day, 6, tz),
            end_at=local_instant(day, 9, tz),
            shift_fit=ShiftFit.MORNING,
            source=ReservationSource.ADMIN,
            attendee=None,
            notes="",
            actor=admin_actor,
        )
        reservation.clear_events()
        reservation.cancel("Weather", admin_actor)
        return reservation

    return _make
