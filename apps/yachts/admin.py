"""Admin registrations for the fleet."""

from __future__ import annotations

from django.contrib import admin

from .models import Yacht


@admin.register(Yacht)
class YachtAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "slug",
        "vessel_type",
        "capacity",
        "booking_mode",
        "booking_public_enabled",
        "booking_v2_live_from",
    )
    list_filter = ("booking_mode", "booking_public_enabled", "vessel_type")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}
    readonly_fields = ("created_at", "updated_at")
