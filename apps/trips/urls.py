"""URL declarations for trip planning."""

from __future__ import annotations

from django.urls import path, include  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import TripViewSet

router = SimpleRouter()
router.register(r'', TripViewSet, basename='trip')

urlpatterns = [
    path('', include(router.urls)),
]
