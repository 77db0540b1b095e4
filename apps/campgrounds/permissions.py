"""Permissions for campground management."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore

from apps.users.permissions import is_owner, is_platform_admin

from .models import Campground, Campsite, SafetyAlert


def _campground_of(obj):
    if isinstance(obj, Campground):
        return obj
    if isinstance(obj, Campsite):
        return obj.campground
    if isinstance(obj, SafetyAlert):
        return obj.campground if obj.campground_id else obj.campsite.campground
    return None


class IsCampgroundOwnerOrAdmin(permissions.BasePermission):
    """Reads are public; owners manage their own listings, admins manage all."""

    def has_permission(self, request, view):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if not user.is_authenticated:
            return False
        return is_platform_admin(user) or is_owner(user)

    def has_object_permission(self, request, view, obj):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if is_platform_admin(user):
            return True
        campground = _campground_of(obj)
        return campground is not None and campground.is_managed_by(user)
