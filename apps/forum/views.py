"""API views for the community forum."""

from __future__ import annotations

import logging

from django.db.models import F  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import PermissionDenied  # type: ignore
from rest_framework.pagination import PageNumberPagination  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsPlatformAdmin, is_platform_admin

from . import services
from .filters import ForumPostFilterSet
from .models import ForumPost, ForumReply
from .serializers import (
    ForumPostDetailSerializer,
    ForumPostSerializer,
    ForumReplySerializer,
    ModerationSerializer,
    VoteSerializer,
)

logger = logging.getLogger(__name__)

SORT_ORDERINGS = {
    "latest": ["-created_at"],
    "oldest": ["created_at"],
    "most_voted": ["-vote_score", "-created_at"],
    "most_replied": ["-reply_count", "-created_at"],
    "most_viewed": ["-views", "-created_at"],
    "trending": ["-last_activity", "-vote_score"],
}
FEATURED_ORDERING = ["-is_sticky", "-is_pinned", "-created_at"]


class ForumPagination(PageNumberPagination):
    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 50


class IsPostAuthorOrAdmin(permissions.BasePermission):
    """Only the author or an admin may edit or delete a post."""

    def has_object_permission(self, request, view, obj: ForumPost) -> bool:  # type: ignore
        if view.action not in ("update", "partial_update", "destroy"):
            return True
        return obj.author_id == request.user.id or is_platform_admin(request.user)


class ForumPostViewSet(viewsets.ModelViewSet):
    """Forum posts with replies, votes and moderation.

    Listing defaults to active posts; ``sort`` accepts latest, oldest,
    most_voted, most_replied, most_viewed and trending, and any other value
    puts sticky and pinned posts first.
    """

    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsPostAuthorOrAdmin]
    pagination_class = ForumPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = ForumPostFilterSet
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore
        queryset = ForumPost.objects.select_related("author").prefetch_related("tags")
        if not is_platform_admin(self.request.user):
            queryset = queryset.visible()
        if self.action == "list":
            queryset = queryset.filter(status=self.request.query_params.get("status", ForumPost.Status.ACTIVE))
            ordering = SORT_ORDERINGS.get(self.request.query_params.get("sort", "latest"), FEATURED_ORDERING)
            return queryset.with_counts().order_by(*ordering)
        return queryset.with_counts()

    def get_serializer_class(self):  # type: ignore
        if self.action == "retrieve":
            return ForumPostDetailSerializer
        return ForumPostSerializer

    def _annotated(self, post: ForumPost) -> ForumPost:
        return ForumPost.objects.select_related("author").prefetch_related("tags").with_counts().get(pk=post.pk)

    def _reply(self, post: ForumPost, reply_id) -> ForumReply:
        return get_object_or_404(post.replies.select_related("author").with_counts(), pk=reply_id)

    def retrieve(self, request, *args, **kwargs):  # type: ignore
        post = self.get_object()
        if post.author_id != request.user.id:
            ForumPost.objects.filter(pk=post.pk).update(views=F("views") + 1)
            post.views += 1
        return Response(self.get_serializer(post).data)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        post = serializer.save(author=request.user)
        logger.info("Forum post %s created by user %s", post.pk, request.user.pk)
        return Response(self.get_serializer(self._annotated(post)).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):  # type: ignore
        post = self.get_object()
        if post.is_locked and not is_platform_admin(request.user):
            raise PermissionDenied("This post is locked and cannot be edited.")
        serializer = self.get_serializer(post, data=request.data, partial=kwargs.pop("partial", False))
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(self.get_serializer(self._annotated(post)).data)

    def perform_destroy(self, instance):  # type: ignore
        if is_platform_admin(self.request.user):
            instance.delete()
        else:
            instance.status = ForumPost.Status.DELETED
            instance.save(update_fields=["status", "updated_at"])
        logger.info("Forum post %s deleted by user %s", instance.pk, self.request.user.pk)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAuthenticated])
    def vote(self, request, pk=None):  # type: ignore
        post = self.get_object()
        serializer = VoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        current = services.toggle_vote(post, request.user, serializer.validated_data["vote_type"])
        return Response({**services.vote_summary(post), "user_vote": current})

    @action(detail=True, methods=["get"], url_path="replies", url_name="replies")
    def reply_list(self, request, pk=None):  # type: ignore
        post = self.get_object()
        replies = post.replies.select_related("author").with_counts()
        return Response(ForumReplySerializer(replies, many=True, context={"request": request}).data)

    @reply_list.mapping.post
    def add_reply(self, request, pk=None):  # type: ignore
        post = self.get_object()
        serializer = ForumReplySerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        try:
            reply = services.add_reply(post, request.user, serializer.validated_data["content"])
        except services.ForumError as exc:
            return Response({"detail": exc.message}, status=exc.status_code)
        data = ForumReplySerializer(self._reply(post, reply.pk), context={"request": request}).data
        return Response(data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["delete"],
        url_path=r"replies/(?P<reply_id>\d+)",
        url_name="reply-detail",
        permission_classes=[permissions.IsAuthenticated],
    )
    def delete_reply(self, request, pk=None, reply_id=None):  # type: ignore
        reply = self._reply(self.get_object(), reply_id)
        if reply.author_id != request.user.id and not is_platform_admin(request.user):
            raise PermissionDenied("Not authorized to delete this reply.")
        reply.delete()
        logger.info("Forum reply %s deleted by user %s", reply_id, request.user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(
        detail=True,
        methods=["post"],
        url_path=r"replies/(?P<reply_id>\d+)/vote",
        url_name="reply-vote",
        permission_classes=[permissions.IsAuthenticated],
    )
    def vote_reply(self, request, pk=None, reply_id=None):  # type: ignore
        reply = self._reply(self.get_object(), reply_id)
        serializer = VoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        current = services.toggle_vote(reply, request.user, serializer.validated_data["vote_type"])
        return Response({**services.vote_summary(reply), "user_vote": current})

    @action(
        detail=True,
        methods=["post"],
        url_path=r"replies/(?P<reply_id>\d+)/accept",
        url_name="reply-accept",
        permission_classes=[permissions.IsAuthenticated],
    )
    def accept_reply(self, request, pk=None, reply_id=None):  # type: ignore
        post = self.get_object()
        if post.author_id != request.user.id and not is_platform_admin(request.user):
            raise PermissionDenied("Not authorized to accept answers for this post.")
        reply = self._reply(post, reply_id)
        try:
            services.accept_answer(post, reply)
        except services.ForumError as exc:
            return Response({"detail": exc.message}, status=exc.status_code)
        return Response(ForumReplySerializer(reply, context={"request": request}).data)

    @action(detail=False, methods=["get"])
    def categories(self, request):  # type: ignore
        return Response([{"value": value, "label": str(label)} for value, label in ForumPost.Category.choices])

    @action(detail=False, methods=["get"])
    def stats(self, request):  # type: ignore
        return Response(services.forum_stats())

    @action(detail=True, methods=["post"], permission_classes=[IsPlatformAdmin])
    def moderate(self, request, pk=None):  # type: ignore
        post = self.get_object()
        serializer = ModerationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.moderate(
            post,
            serializer.validated_data["action"],
            moderator=request.user,
            reason=serializer.validated_data.get("reason", ""),
        )
        return Response(self.get_serializer(self._annotated(post)).data)
