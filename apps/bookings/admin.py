"""Admin registration for reservations."""

from __future__ import annotations

from django.contrib import admin

from .models import BookingRateLimit, BookingRequestLog, Reservation, ReservationChangeLog


class ReservationChangeLogInline(admin.TabularInline):
    model = ReservationChangeLog
    extra = 0
    can_delete = False
    fields = ("created_at", "action", "booking_uid", "actor_label", "payload")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "booking_uid",
        "yacht",
        "start_at",
        "end_at",
        "status",
        "source",
        "shift_fit",
        "guest_name",
        "created_at",
    )
    list_filter = ("status", "source", "block_scope", "shift_fit", "yacht")
    search_fields = ("booking_uid", "guest_name", "guest_email", "yacht__name")
    date_hierarchy = "start_at"
    readonly_fields = (
        "booking_uid_history",
        "blocked_until",
        "cancelled_at",
        "created_by",
        "created_at",
        "updated_at",
    )
    inlines = [ReservationChangeLogInline]


@admin.register(BookingRequestLog)
class BookingRequestLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "endpoint", "status_code", "request_id")
    list_filter = ("endpoint", "status_code")
    search_fields = ("request_id",)
    readonly_fields = ("endpoint", "request_id", "status_code", "details", "created_at")


@admin.register(BookingRateLimit)
class BookingRateLimitAdmin(admin.ModelAdmin):
    list_display = ("created_at", "endpoint", "ip_hash", "email_hash")
    list_filter = ("endpoint",)
    readonly_fields = ("endpoint", "ip_hash", "email_hash", "created_at")
