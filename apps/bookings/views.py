"""API views for yacht charter bookings."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.application.message_bus import message_bus

from .application.command_handlers import (
    CancelBookingCommand,
    CreateBookingCommand,
    RescheduleBookingCommand,
    UpdateReservationDetailsCommand,
)
from .application.queries import GetAvailabilityQuery
from .domain.entities import ReservationSource
from .filters import ReservationFilterSet
from .models import Reservation
from .permissions import IsBookingAdmin, IsBookingAdminOrStaff, actor_for
from .serializers import (
    AvailabilityQuerySerializer,
    BookingResultSerializer,
    CancelBookingSerializer,
    CreateBookingSerializer,
    ReservationDetailSerializer,
    ReservationSerializer,
    ReservationUpdateSerializer,
    RescheduleBookingSerializer,
)
from .services import BookingRateLimiter, get_client_ip, get_request_id, log_booking_request


class BookingEndpointMixin:
    """Tags every response with a request id and records its outcome."""

    endpoint = "booking"

    def get_endpoint(self) -> str:
        return self.endpoint

    def initial(self, request, *args, **kwargs):  # type: ignore
        get_request_id(request)
        self.log_details = {}
        super().initial(request, *args, **kwargs)

    def finalize_response(self, request, response, *args, **kwargs):  # type: ignore
        response = super().finalize_response(request, response, *args, **kwargs)
        request_id = get_request_id(request)
        response["X-Request-ID"] = request_id

        details = dict(getattr(self, "log_details", {}))
        data = getattr(response, "data", None)
        if isinstance(data, dict) and "error" in data:
            details["error"] = data["error"]
        log_booking_request(
            endpoint=self.get_endpoint(),
            request_id=request_id,
            status_code=response.status_code,
            details=details,
        )
        return response

    def result_response(self, request, result, status_code=status.HTTP_200_OK):  # type: ignore
        payload = dict(BookingResultSerializer(result.to_dict()).data)
        payload["request_id"] = get_request_id(request)
        self.log_details["booking_uid"] = result.booking_uid
        return Response(payload, status=status_code)


class AvailabilityView(BookingEndpointMixin, APIView):
    """Month of per-day availability for signed-in users."""

    endpoint = "internal-booking-availability"
    permission_classes = [permissions.IsAuthenticated]
    public = False

    def get(self, request):  # type: ignore
        params = AvailabilityQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        slug = params.validated_data["slug"]
        month = params.validated_data["month"]
        self.log_details = {"slug": slug, "month": month}

        availability = message_bus.handle_command(
            GetAvailabilityQuery(yacht_slug=slug, month=month, public=self.public)
        )
        payload = availability.to_dict()
        payload["request_id"] = get_request_id(request)
        return Response(payload)


class PublicAvailabilityView(AvailabilityView):
    endpoint = "public-booking-availability"
    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]
    public = True


class CreateBookingView(BookingEndpointMixin, APIView):
    """Booking from the internal calendar."""

    endpoint = "internal-booking-create"
    permission_classes = [permissions.IsAuthenticated]
    source = ReservationSource.INTERNAL
    public = False

    def post(self, request):  # type: ignore
        serializer = CreateBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        self.log_details = {"slug": data["slug"], "date": data["date"].isoformat()}

        BookingRateLimiter().hit(
            endpoint=self.endpoint,
            ip=get_client_ip(request),
            email=data["attendee"].email,
        )
        result = message_bus.handle_command(CreateBookingCommand(
            yacht_slug=data["slug"],
            date=data["date"],
            duration_hours=data["duration_hours"],
            start_hour=data["start_hour"],
            attendee=data["attendee"],
            notes=data.get("notes", ""),
            source=self.source,
            actor=actor_for(request.user),
            public=self.public,
        ))
        return self.result_response(request, result, status.HTTP_201_CREATED)


class PublicCreateBookingView(CreateBookingView):
    """Booking from the public booking page."""

    endpoint = "public-booking-create"
    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]
    source = ReservationSource.PUBLIC
    public = True


class RescheduleBookingView(BookingEndpointMixin, APIView):
    endpoint = "internal-calendar-booking-reschedule"
    permission_classes = [permissions.IsAuthenticated, IsBookingAdmin]

    def post(self, request):  # type: ignore
        serializer = RescheduleBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        self.log_details = {"slug": data["slug"], "previous_booking_uid": data["booking_uid"]}

        result = message_bus.handle_command(RescheduleBookingCommand(
            booking_uid=data["booking_uid"],
            yacht_slug=data["slug"],
            date=data["date"],
            duration_hours=data["duration_hours"],
            start_hour=data["start_hour"],
            actor=actor_for(request.user),
        ))
        return self.result_response(request, result)


class CancelBookingView(BookingEndpointMixin, APIView):
    endpoint = "internal-calendar-booking-cancel"
    permission_classes = [permissions.IsAuthenticated, IsBookingAdmin]

    def post(self, request):  # type: ignore
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        self.log_details = {"slug": data["slug"], "booking_uid": data["booking_uid"]}

        result = message_bus.handle_command(CancelBookingCommand(
            booking_uid=data["booking_uid"],
            yacht_slug=data["slug"],
            reason=data["reason"],
            actor=actor_for(request.user),
        ))
        self.log_details["changed"] = result.changed
        return self.result_response(request, result)


class ReservationViewSet(
    BookingEndpointMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Internal calendar: list by yacht and month, details and contact edits."""

    queryset = Reservation.objects.select_related("yacht").all()
    lookup_field = "booking_uid"
    filterset_class = ReservationFilterSet
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    ordering_fields = ["start_at", "created_at"]
    ordering = ["start_at"]
    http_method_names = ["get", "patch", "head", "options"]

    def get_endpoint(self) -> str:
        if getattr(self, "action", None) == "list":
            return "internal-calendar-bookings"
        return "internal-reservation-details"

    def get_permissions(self):  # type: ignore
        if self.action == "list":
            return [permissions.IsAuthenticated(), IsBookingAdmin()]
        return [permissions.IsAuthenticated(), IsBookingAdminOrStaff()]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if self.action != "list":
            qs = qs.prefetch_related("change_log")
        return qs

    def get_serializer_class(self):  # type: ignore
        if self.action == "list":
            return ReservationSerializer
        return ReservationDetailSerializer

    def partial_update(self, request, booking_uid=None):  # type: ignore
        serializer = ReservationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.log_details = {"booking_uid": booking_uid, "fields": sorted(serializer.validated_data)}

        message_bus.handle_command(UpdateReservationDetailsCommand(
            booking_uid=booking_uid,
            changes=dict(serializer.validated_data),
            actor=actor_for(request.user),
        ))
        instance = self.get_object()
        return Response(ReservationDetailSerializer(instance, context=self.get_serializer_context()).data)
