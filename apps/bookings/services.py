"""Request-side services for the booking API: rate limiting and request logs."""

from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import timedelta
from typing import Any

import structlog
from django.conf import settings  # type: ignore
from django.db import DatabaseError, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from .domain.exceptions import RateLimited
from .models import BookingRateLimit, BookingRateLimitSubject, BookingRequestLog
from .repositories import store_errors

logger = logging.getLogger(__name__)
request_logger = structlog.get_logger("apps.bookings.requests")

REQUEST_ID_HEADER = "HTTP_X_REQUEST_ID"


def get_request_id(request) -> str:  # type: ignore
    """Request id from X-Request-ID, generated once per request otherwise."""

    request_id = getattr(request, "_booking_request_id", None)
    if request_id:
        return request_id
    meta = getattr(request, "META", {})
    request_id = (meta.get(REQUEST_ID_HEADER) or "").strip()[:64] or uuid.uuid4().hex
    request._booking_request_id = request_id
    return request_id


def get_client_ip(request) -> str:  # type: ignore
    """First address of X-Forwarded-For, falling back to REMOTE_ADDR."""

    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.META.get("REMOTE_ADDR", "") or ""


def hash_identifier(kind: str, value: str, salt: str | None = None) -> str:
    salt = settings.BOOKING_RATE_LIMIT_SALT if salt is None else salt
    return hashlib.sha256(f"{salt}:{kind}:{value}".encode("utf-8")).hexdigest()


class BookingRateLimiter:
    """
    Sliding-window limit on create attempts

    Attempts are counted separately per hashed client IP and per hashed
    email; reaching the limit on either rejects the attempt. Raw IPs and
    emails are never stored.
    """

    def __init__(self, max_requests: int | None = None, window_minutes: int | None = None):
        self.max_requests = max_requests or settings.BOOKING_RATE_LIMIT_MAX_REQUESTS
        self.window = timedelta(minutes=window_minutes or settings.BOOKING_RATE_LIMIT_WINDOW_MINUTES)

    def hit(self, *, endpoint: str, ip: str = "", email: str = "") -> None:
        """
        Record one attempt, or raise RateLimited if the window is full.

        Rejected attempts are not recorded. Each client's subject rows stay
        locked until the attempt is stored, so concurrent requests from one
        client are counted one after another.
        """
        ip_hash = hash_identifier("ip", ip) if ip else ""
        email_hash = hash_identifier("email", email.strip().lower()) if email else ""
        subjects = sorted(value for value in (ip_hash, email_hash) if value)
        since = timezone.now() - self.window

        with store_errors(), transaction.atomic():
            self._lock_subjects(subjects)
            recent = BookingRateLimit.objects.filter(created_at__gte=since)
            if ip_hash and recent.filter(ip_hash=ip_hash).count() >= self.max_requests:
                raise RateLimited(retry_after=int(self.window.total_seconds()))
            if email_hash and recent.filter(email_hash=email_hash).count() >= self.max_requests:
                raise RateLimited(retry_after=int(self.window.total_seconds()))
            BookingRateLimit.objects.create(endpoint=endpoint, ip_hash=ip_hash, email_hash=email_hash)
            BookingRateLimitSubject.objects.filter(subject_hash__in=subjects).update(last_hit_at=timezone.now())

    def _lock_subjects(self, subjects: list[str]) -> None:
        # always locked in sorted order
        for subject_hash in subjects:
            BookingRateLimitSubject.objects.get_or_create(subject_hash=subject_hash)
        list(
            BookingRateLimitSubject.objects
            .select_for_update()
            .filter(subject_hash__in=subjects)
            .order_by("subject_hash")
        )

    def purge(self) -> int:
        cutoff = timezone.now() - self.window
        deleted, _ = BookingRateLimit.objects.filter(created_at__lt=cutoff).delete()
        BookingRateLimitSubject.objects.filter(last_hit_at__lt=cutoff).delete()
        return deleted


def log_booking_request(
    *,
    endpoint: str,
    request_id: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> BookingRequestLog | None:
    """Persist and emit the outcome of one booking API call."""

    details = details or {}
    request_logger.info(
        "booking_request",
        endpoint=endpoint,
        request_id=request_id,
        status_code=status_code,
        **details,
    )
    try:
        return BookingRequestLog.objects.create(
            endpoint=endpoint,
            request_id=request_id,
            status_code=status_code,
            details=details,
        )
    except DatabaseError:
        # log table unavailable, response still goes out
        logger.warning(f"Could not store request log for {endpoint} ({request_id})", exc_info=True)
        return None


def purge_request_logs(retention_days: int | None = None) -> int:
    days = retention_days or settings.BOOKING_REQUEST_LOG_RETENTION_DAYS
    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = BookingRequestLog.objects.filter(created_at__lt=cutoff).delete()
    return deleted
