"""URL declarations for the campgrounds app."""

from __future__ import annotations

from django.urls import path, include  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import CampgroundViewSet, CampsiteViewSet, SafetyAlertViewSet

router = SimpleRouter()
router.register(r'campsites', CampsiteViewSet, basename='campsite')
router.register(r'safety-alerts', SafetyAlertViewSet, basename='safety-alert')
router.register(r'', CampgroundViewSet, basename='campground')

urlpatterns = [
    path('', include(router.urls)),
]
