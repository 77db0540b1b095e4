"""URL routing for owner onboarding."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import OwnerApplicationAdminViewSet, OwnerApplicationView, OwnerApplyView, OwnerBookingsView

router = SimpleRouter()
router.register(r"applications", OwnerApplicationAdminViewSet, basename="owner-application")

urlpatterns = [
    path("apply/", OwnerApplyView.as_view(), name="owner-apply"),
    path("application/", OwnerApplicationView.as_view(), name="owner-application-mine"),
    path("bookings/", OwnerBookingsView.as_view(), name="owner-bookings"),
    path("", include(router.urls)),
]
