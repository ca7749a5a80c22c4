"""Wires the booking engine into the global message bus."""

from __future__ import annotations

from shared.application.message_bus import MessageBus

from .application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CreateBookingCommand,
    CreateBookingHandler,
    RescheduleBookingCommand,
    RescheduleBookingHandler,
    UpdateReservationDetailsCommand,
    UpdateReservationDetailsHandler,
)
from .application.event_handlers import log_reservation_event
from .application.queries import GetAvailabilityHandler, GetAvailabilityQuery
from .domain.events import ReservationCancelled, ReservationCreated, ReservationRescheduled
from .domain.exceptions import BookingError
from .repositories import DjangoReservationStore


def bootstrap(bus: MessageBus, store: DjangoReservationStore | None = None) -> MessageBus:
    """Register booking commands, queries and event subscribers on `bus`."""

    store = store or DjangoReservationStore()
    bus.expected_errors = (BookingError,)

    bus.register_command_handler(GetAvailabilityQuery, GetAvailabilityHandler(store).handle, replace=True)
    bus.register_command_handler(CreateBookingCommand, CreateBookingHandler(store).handle, replace=True)
    bus.register_command_handler(RescheduleBookingCommand, RescheduleBookingHandler(store).handle, replace=True)
    bus.register_command_handler(CancelBookingCommand, CancelBookingHandler(store).handle, replace=True)
    bus.register_command_handler(
        UpdateReservationDetailsCommand,
        UpdateReservationDetailsHandler(store).handle,
        replace=True,
    )

    for event_type in (ReservationCreated, ReservationRescheduled, ReservationCancelled):
        bus.register_event_handler(event_type, log_reservation_event)
    return bus
