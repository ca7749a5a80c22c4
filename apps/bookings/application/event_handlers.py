"""
Reservation Event Handlers

Subscribers to reservation events. They run after commit, so they only
observe; the audit rows themselves are written inside the transaction.
"""

import structlog

from shared.domain.base import DomainEvent

audit_logger = structlog.get_logger("apps.bookings.audit")


def log_reservation_event(event: DomainEvent) -> None:
    """Emit one structured log line per reservation change."""
    data = event.to_dict()
    event_type = data.pop('event_type')
    audit_logger.info(event_type, **data)
