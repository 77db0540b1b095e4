"""API views for campground reviews."""

from __future__ import annotations

import logging

from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import mixins, permissions, viewsets  # type: ignore

from apps.campgrounds.models import Campground
from apps.users.permissions import is_platform_admin

from .models import Review
from .serializers import ReviewSerializer

logger = logging.getLogger(__name__)


class IsReviewAuthorOrAdmin(permissions.BasePermission):
    """Allow authors to delete their reviews and admins to delete any."""

    def has_object_permission(self, request, view, obj: Review) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if not user.is_authenticated:
            return False
        if is_platform_admin(user):
            return True
        return obj.author_id == user.id


class ReviewViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Reviews nested under ``/campgrounds/<campground_id>/reviews/``."""

    serializer_class = ReviewSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsReviewAuthorOrAdmin]
    lookup_value_regex = r"\d+"

    def get_campground(self) -> Campground:
        if not hasattr(self, "_campground"):
            self._campground = get_object_or_404(Campground, pk=self.kwargs["campground_id"])
        return self._campground

    def get_queryset(self):  # type: ignore
        return Review.objects.select_related("author").filter(campground=self.get_campground())

    def perform_create(self, serializer):  # type: ignore
        review = serializer.save(campground=self.get_campground(), author=self.request.user)
        logger.info("Review %s created on campground %s", review.pk, review.campground_id)

    def perform_destroy(self, instance):  # type: ignore
        logger.info("Review %s deleted by user %s", instance.pk, self.request.user.pk)
        instance.delete()
