"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import BookingRateLimiter, purge_request_logs

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled by Celery Beat)
# ============================================================================

@shared_task(name="bookings.purge_rate_limit_records")
def purge_rate_limit_records() -> dict[str, int]:
    """
    Delete rate-limit hits that fell out of the window.

    Returns:
        dict: {"deleted": number of rows removed}
    """
    deleted = BookingRateLimiter().purge()
    logger.info(f"Purged {deleted} booking rate limit records")
    return {"deleted": deleted}


@shared_task(name="bookings.purge_request_logs")
def purge_booking_request_logs(retention_days: int | None = None) -> dict[str, int]:
    """Delete request logs older than BOOKING_REQUEST_LOG_RETENTION_DAYS."""
    deleted = purge_request_logs(retention_days)
    logger.info(f"Purged {deleted} booking request logs")
    return {"deleted": deleted}
