"""Permissions for the booking domain."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore

from apps.users.permissions import is_platform_admin

from .models import Booking


class IsBookingStakeholder(permissions.BasePermission):
    """The guest who made the booking and platform admins."""

    message = "You do not have permission to access this booking."

    def has_object_permission(self, request, view, obj: Booking):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if is_platform_admin(user):
            return True
        return obj.user_id == user.id
