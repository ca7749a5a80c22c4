"""FilterSet for the internal reservation calendar."""

from __future__ import annotations

import django_filters  # type: ignore
from rest_framework.exceptions import ValidationError  # type: ignore

from shared.domain.value_objects import MonthKey

from .domain.localtime import booking_timezone, month_bounds
from .models import Reservation


class ReservationFilterSet(django_filters.FilterSet):
    """Reservations of one yacht, month (local calendar) and status."""

    yacht = django_filters.CharFilter(field_name="yacht__slug", lookup_expr="exact")
    month = django_filters.CharFilter(method="filter_month")
    status = django_filters.ChoiceFilter(choices=Reservation.Status.choices)
    source = django_filters.ChoiceFilter(choices=Reservation.Source.choices)
    guest_email = django_filters.CharFilter(field_name="guest_email", lookup_expr="iexact")

    class Meta:
        model = Reservation
        fields = ["yacht", "status", "source"]

    def filter_month(self, queryset, name, value):  # type: ignore
        if not value:
            return queryset
        try:
            month = MonthKey.parse(value)
        except ValueError as exc:
            raise ValidationError({"month": str(exc)}) from exc
        start, end = month_bounds(month, booking_timezone())
        return queryset.filter(start_at__gte=start, start_at__lt=end)
