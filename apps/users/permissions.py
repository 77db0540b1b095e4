"""Role-based permission classes shared by the domain apps."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def is_platform_admin(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_platform_admin") and user.is_platform_admin()


def is_owner(user) -> bool:
    return bool(user and user.is_authenticated and hasattr(user, "is_owner") and user.is_owner())


class IsPlatformAdmin(permissions.BasePermission):
    """Only platform administrators."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return is_platform_admin(request.user)


class IsOwnerOrAdmin(permissions.BasePermission):
    """Approved campground owners and platform administrators."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return is_owner(request.user) or is_platform_admin(request.user)
