"""URL declarations for campground reviews."""

from __future__ import annotations

from django.urls import path, include  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import ReviewViewSet

router = SimpleRouter()
router.register(r'', ReviewViewSet, basename='review')

urlpatterns = [
    path('', include(router.urls)),
]
