"""URL routing for the booking API."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    AvailabilityView,
    CancelBookingView,
    CreateBookingView,
    PublicAvailabilityView,
    PublicCreateBookingView,
    RescheduleBookingView,
    ReservationViewSet,
)

router = DefaultRouter()
router.register(r"reservations", ReservationViewSet, basename="reservation")

urlpatterns = [
    path("availability/", AvailabilityView.as_view(), name="booking-availability"),
    path("availability/public/", PublicAvailabilityView.as_view(), name="booking-availability-public"),
    path("internal/", CreateBookingView.as_view(), name="booking-create"),
    path("public/", PublicCreateBookingView.as_view(), name="booking-create-public"),
    path("reschedule/", RescheduleBookingView.as_view(), name="booking-reschedule"),
    path("cancel/", CancelBookingView.as_view(), name="booking-cancel"),
    path("", include(router.urls)),
]
