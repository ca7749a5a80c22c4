"""Role checks for the booking API."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from rest_framework import permissions  # type: ignore

from .domain.entities import Actor


def _in_group(user, name: str) -> bool:  # type: ignore
    return bool(name) and user.groups.filter(name=name).exists()


def is_booking_admin(user) -> bool:  # type: ignore
    if not getattr(user, "is_authenticated", False):
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return _in_group(user, settings.BOOKING_ADMIN_GROUP)


def is_booking_staff(user) -> bool:  # type: ignore
    if not getattr(user, "is_authenticated", False):
        return False
    return _in_group(user, settings.BOOKING_STAFF_GROUP)


def actor_for(user) -> Actor:  # type: ignore
    """Audit identity of the requesting user."""

    if not getattr(user, "is_authenticated", False):
        return Actor.anonymous()
    return Actor(
        user_id=user.pk,
        label=user.get_username(),
        is_admin=is_booking_admin(user),
        is_staff=is_booking_staff(user),
    )


class IsBookingAdmin(permissions.BasePermission):
    """Staff users, superusers and members of the booking admin group."""

    message = "Only booking admins can perform this action."

    def has_permission(self, request, view):  # type: ignore
        return is_booking_admin(request.user)


class IsBookingAdminOrStaff(permissions.BasePermission):
    message = "Only booking admins or staff can perform this action."

    def has_permission(self, request, view):  # type: ignore
        return is_booking_admin(request.user) or is_booking_staff(request.user)
