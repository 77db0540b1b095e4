"""URL declarations for the community forum."""

from __future__ import annotations

from django.urls import path, include  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import ForumPostViewSet

router = SimpleRouter()
router.register(r'', ForumPostViewSet, basename='forum-post')

urlpatterns = [
    path('', include(router.urls)),
]
