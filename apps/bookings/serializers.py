"""Serializers for the booking API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .domain.entities import Attendee
from .domain.localtime import booking_timezone, resolve_start_hour, to_local
from .models import Reservation, ReservationChangeLog


class AvailabilityQuerySerializer(serializers.Serializer):
    slug = serializers.SlugField(max_length=160)
    month = serializers.CharField(max_length=7, help_text="Month as YYYY-MM.")


class AttendeeSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=40, required=False, allow_blank=True, default="")

    def to_internal_value(self, data):  # type: ignore
        attrs = super().to_internal_value(data)
        return Attendee(name=attrs["name"], email=attrs["email"], phone=attrs.get("phone", ""))


class _SlotSerializer(serializers.Serializer):
    """
    Date, duration and start of a trip.

    Numbers are accepted as floats so that values like 3.5 reach the
    policy check and fail there with a policy violation.
    """

    slug = serializers.SlugField(max_length=160)
    date = serializers.DateField(input_formats=["%Y-%m-%d"])
    duration_hours = serializers.FloatField()
    start_hour = serializers.FloatField(required=False, allow_null=True, default=None)
    requested_start = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):  # type: ignore
        attrs["start_hour"] = resolve_start_hour(
            attrs["date"],
            attrs.get("start_hour"),
            attrs.get("requested_start") or None,
            booking_timezone(),
        )
        return attrs


class CreateBookingSerializer(_SlotSerializer):
    attendee = AttendeeSerializer()
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")


class RescheduleBookingSerializer(_SlotSerializer):
    booking_uid = serializers.CharField(max_length=64)


class CancelBookingSerializer(serializers.Serializer):
    booking_uid = serializers.CharField(max_length=64)
    slug = serializers.SlugField(max_length=160)
    reason = serializers.CharField(max_length=500)


class BookingResultSerializer(serializers.Serializer):
    booking_uid = serializers.CharField()
    status = serializers.CharField()
    previous_booking_uid = serializers.CharField(required=False)
    change_mode = serializers.CharField(required=False)


class ReservationChangeLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReservationChangeLog
        fields = ["id", "booking_uid", "action", "actor_label", "payload", "created_at"]
        read_only_fields = fields


class ReservationSerializer(serializers.ModelSerializer):
    """Reservation as shown on the internal calendar, with local date and hours."""

    yacht = serializers.SlugRelatedField(slug_field="slug", read_only=True)
    date = serializers.SerializerMethodField()
    start_hour = serializers.SerializerMethodField()
    duration_hours = serializers.SerializerMethodField()

    class Meta:
        model = Reservation
        fields = [
            "booking_uid",
            "booking_uid_history",
            "yacht",
            "date",
            "start_hour",
            "duration_hours",
            "start_at",
            "end_at",
            "status",
            "source",
            "block_scope",
            "shift_fit",
            "guest_name",
            "guest_email",
            "guest_phone",
            "notes",
            "cancellation_reason",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def _local_start(self, obj: Reservation):  # type: ignore
        return to_local(obj.start_at, booking_timezone())

    def get_date(self, obj: Reservation) -> str:
        return self._local_start(obj).date().isoformat()

    def get_start_hour(self, obj: Reservation) -> int:
        return self._local_start(obj).hour

    def get_duration_hours(self, obj: Reservation) -> float:
        return obj.duration_hours


class ReservationDetailSerializer(ReservationSerializer):
    change_log = ReservationChangeLogSerializer(many=True, read_only=True)

    class Meta(ReservationSerializer.Meta):
        fields = [*ReservationSerializer.Meta.fields, "change_log"]
        read_only_fields = fields


class ReservationUpdateSerializer(serializers.Serializer):
    guest_name = serializers.CharField(max_length=200, required=False)
    guest_email = serializers.EmailField(required=False)
    guest_phone = serializers.CharField(max_length=40, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True)

    def validate(self, attrs):  # type: ignore
        if not attrs:
            raise serializers.ValidationError("Nothing to update.")
        if "guest_email" in attrs:
            attrs["guest_email"] = attrs["guest_email"].strip().lower()
        return attrs
