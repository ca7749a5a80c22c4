"""DRF exception handler that renders booking errors with a stable kind."""

from __future__ import annotations

from django.core.exceptions import PermissionDenied  # type: ignore
from django.http import Http404  # type: ignore
from rest_framework import exceptions  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from .domain.exceptions import BookingError, Forbidden, NotFound, RateLimited
from .services import get_request_id

_DRF_KINDS = (
    ((exceptions.NotAuthenticated, exceptions.AuthenticationFailed, exceptions.PermissionDenied, PermissionDenied), Forbidden.kind),
    ((exceptions.NotFound, Http404), NotFound.kind),
    ((exceptions.Throttled,), RateLimited.kind),
    ((exceptions.ValidationError, exceptions.ParseError), "invalid_request"),
    ((exceptions.MethodNotAllowed,), "method_not_allowed"),
)


def _kind_for(exc) -> str:  # type: ignore
    for types, kind in _DRF_KINDS:
        if isinstance(exc, types):
            return kind
    return "error"


def booking_exception_handler(exc, context):  # type: ignore
    """
    Render every API failure as {"error": kind, "detail": ..., "request_id": ...}.

    Unhandled exceptions still propagate to Django as 500s.
    """

    request = context.get("request")
    request_id = get_request_id(request) if request is not None else None

    if isinstance(exc, BookingError):
        data = exc.to_dict()
        data["request_id"] = request_id
        response = Response(data, status=exc.status_code)
        retry_after = exc.context.get("retry_after")
        if retry_after:
            response["Retry-After"] = str(retry_after)
        return response

    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    detail = response.data
    if isinstance(detail, dict) and set(detail) == {"detail"}:
        detail = detail["detail"]
    response.data = {
        "error": _kind_for(exc),
        "detail": detail,
        "request_id": request_id,
    }
    return response
