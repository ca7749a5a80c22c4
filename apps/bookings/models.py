"""Reservation models for yacht charters."""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Reservation(models.Model):
    """An accepted charter of one yacht for a block of hours."""

    class Status(models.TextChoices):
        BOOKED = "booked", _("Booked")
        CANCELLED = "cancelled", _("Cancelled")

    class Source(models.TextChoices):
        PUBLIC = "public", _("Public booking page")
        INTERNAL = "internal", _("Internal calendar")
        ADMIN = "admin", _("Admin")
        LEGACY = "legacy", _("Legacy half-day embed")

    class BlockScope(models.TextChoices):
        HALF_AM = "half_am", _("Morning half-day")
        HALF_PM = "half_pm", _("Afternoon half-day")
        FULL_DAY = "full_day", _("Full day")
        CUSTOM = "custom", _("Hourly")

    class ShiftFit(models.TextChoices):
        MORNING = "morning", _("Morning")
        AFTERNOON = "afternoon", _("Afternoon")
        FLEXIBLE = "flexible", _("Flexible")

    booking_uid = models.CharField(max_length=64, unique=True)
    booking_uid_history = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Previous booking uids, oldest first."),
    )
    yacht = models.ForeignKey(
        "yachts.Yacht",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    blocked_until = models.DateTimeField(
        editable=False,
        help_text=_("End of the trip plus the inter-booking buffer."),
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.BOOKED)
    source = models.CharField(max_length=16, choices=Source.choices, default=Source.PUBLIC)
    block_scope = models.CharField(max_length=16, choices=BlockScope.choices, default=BlockScope.CUSTOM)
    shift_fit = models.CharField(max_length=16, choices=ShiftFit.choices, default=ShiftFit.FLEXIBLE)
    guest_name = models.CharField(max_length=200, blank=True)
    guest_email = models.EmailField(blank=True)
    guest_phone = models.CharField(max_length=40, blank=True)
    notes = models.TextField(blank=True)
    cancellation_reason = models.CharField(max_length=500, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="yacht_reservations",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["start_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_at__gt=models.F("start_at")),
                name="reservation_valid_interval",
            ),
        ]
        indexes = [
            models.Index(fields=["yacht", "start_at"], name="reservation_yacht_start_idx"),
            models.Index(fields=["status"], name="reservation_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Reservation {self.booking_uid} ({self.yacht_id})"

    @property
    def duration_hours(self) -> float:
        return (self.end_at - self.start_at).total_seconds() / 3600

    def save(self, *args, **kwargs):  # type: ignore
        from apps.bookings.domain.policy import get_policy

        if self.guest_email:
            self.guest_email = self.guest_email.strip().lower()
        self.blocked_until = self.end_at + timedelta(hours=get_policy().inter_booking_buffer_hours)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "end_at" in update_fields:
            kwargs["update_fields"] = {*update_fields, "blocked_until"}
        super().save(*args, **kwargs)


class ReservationChangeLog(models.Model):
    """Immutable audit trail of reservation mutations."""

    class Action(models.TextChoices):
        CREATE = "create", _("Created")
        RESCHEDULE = "reschedule", _("Rescheduled")
        CANCEL = "cancel", _("Cancelled")
        UPDATE = "update", _("Details updated")

    reservation = models.ForeignKey(
        Reservation,
        on_delete=models.CASCADE,
        related_name="change_log",
    )
    booking_uid = models.CharField(max_length=64, db_index=True)
    action = models.CharField(max_length=16, choices=Action.choices)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reservation_changes",
    )
    actor_label = models.CharField(max_length=150, blank=True)
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Reservation change")
        verbose_name_plural = _("Reservation changes")
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.action} {self.booking_uid}"


class BookingRateLimit(models.Model):
    """One create attempt, keyed by hashed client IP and email."""

    endpoint = models.CharField(max_length=64)
    ip_hash = models.CharField(max_length=64, blank=True, db_index=True)
    email_hash = models.CharField(max_length=64, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _("Booking rate limit hit")
        verbose_name_plural = _("Booking rate limit hits")

    def __str__(self) -> str:
        return f"{self.endpoint} @ {self.created_at:%Y-%m-%d %H:%M}"


class BookingRequestLog(models.Model):
    """Outcome of one booking API request."""

    endpoint = models.CharField(max_length=64)
    request_id = models.CharField(max_length=64, db_index=True)
    status_code = models.PositiveSmallIntegerField()
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _("Booking request log")
        verbose_name_plural = _("Booking request logs")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.endpoint} {self.status_code} ({self.request_id})"


class BookingRateLimitSubject(models.Model):
    """One hashed client identity; its row is locked while a hit is counted."""

    subject_hash = models.CharField(max_length=64, unique=True)
    last_hit_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        verbose_name = _("Booking rate limit subject")
        verbose_name_plural = _("Booking rate limit subjects")

    def __str__(self) -> str:
        return self.subject_hash[:12]
