"""API views for trip planning and sharing."""

from __future__ import annotations

import logging

from django.db.models import Q  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import PermissionDenied  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.serializers import UserShortSerializer

from . import services
from .models import Trip, TripInvite
from .serializers import (
    TripDaySerializer,
    TripInviteRequestSerializer,
    TripInviteSerializer,
    TripSerializer,
)

logger = logging.getLogger(__name__)

OWNER_ONLY_ACTIONS = {
    "update",
    "partial_update",
    "destroy",
    "invite",
    "remove_collaborator",
    "invites",
    "cancel_invite",
}


class IsTripOwnerForManagement(permissions.BasePermission):
    """Collaborators plan days; only the owner edits, deletes and shares the trip."""

    def has_object_permission(self, request, view, obj: Trip) -> bool:  # type: ignore
        if view.action in OWNER_ONLY_ACTIONS:
            return obj.is_owner(request.user)
        return True


class TripViewSet(viewsets.ModelViewSet):
    """Trips owned by or shared with the current user."""

    serializer_class = TripSerializer
    permission_classes = [permissions.IsAuthenticated, IsTripOwnerForManagement]
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore
        user = self.request.user
        return (
            Trip.objects.filter(Q(user=user) | Q(collaborators=user))
            .distinct()
            .select_related("user")
            .prefetch_related("collaborators", "days")
        )

    def perform_create(self, serializer):  # type: ignore
        services.create_trip(serializer, self.request.user)

    def perform_destroy(self, instance):  # type: ignore
        logger.info("Trip %s deleted by user %s", instance.pk, self.request.user.pk)
        instance.delete()

    @action(detail=True, methods=["post"])
    def days(self, request, pk=None):  # type: ignore
        trip = self.get_object()
        serializer = TripDaySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save(trip=trip)
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["put", "patch", "delete"], url_path=r"days/(?P<day_id>\d+)", url_name="day-detail")
    def day_detail(self, request, pk=None, day_id=None):  # type: ignore
        day = get_object_or_404(self.get_object().days.all(), pk=day_id)
        if request.method == "DELETE":
            day.delete()
            return Response(status=status.HTTP_204_NO_CONTENT)
        serializer = TripDaySerializer(day, data=request.data, partial=request.method == "PATCH")
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    @action(detail=True, methods=["post"])
    def invite(self, request, pk=None):  # type: ignore
        trip = self.get_object()
        serializer = TripInviteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            outcome = services.invite_to_trip(
                trip,
                request.user,
                serializer.validated_data["email"],
                serializer.validated_data.get("message", ""),
            )
        except services.TripError as exc:
            return Response({"detail": exc.message}, status=exc.status_code)
        if outcome.collaborator_added:
            return Response({"detail": "Collaborator invited successfully."})
        return Response(
            {"detail": "Invite sent to non-registered user.", "invite": TripInviteSerializer(outcome.invite).data}
        )

    @action(detail=True, methods=["get"])
    def collaborators(self, request, pk=None):  # type: ignore
        trip = self.get_object()
        return Response(
            {
                "owner": UserShortSerializer(trip.user).data,
                "collaborators": UserShortSerializer(trip.collaborators.all(), many=True).data,
            }
        )

    @action(
        detail=True,
        methods=["delete"],
        url_path=r"collaborators/(?P<user_id>\d+)",
        url_name="collaborator-detail",
    )
    def remove_collaborator(self, request, pk=None, user_id=None):  # type: ignore
        trip = self.get_object()
        collaborator = get_object_or_404(trip.collaborators.all(), pk=user_id)
        trip.collaborators.remove(collaborator)
        logger.info("User %s removed from trip %s", collaborator.pk, trip.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["delete"], url_path="collaborators/me", url_name="leave")
    def leave(self, request, pk=None):  # type: ignore
        trip = self.get_object()
        if trip.is_owner(request.user):
            raise PermissionDenied("Owner cannot remove themselves from their own trip.")
        trip.collaborators.remove(request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):  # type: ignore
        # Invitees are not members yet, so look the trip up directly.
        trip = get_object_or_404(Trip, pk=pk)
        try:
            services.accept_invite(trip, request.user)
        except services.TripError as exc:
            return Response({"detail": exc.message}, status=exc.status_code)
        return Response({"detail": "Trip invite accepted.", "trip": TripSerializer(self.get_queryset().get(pk=trip.pk)).data})

    @action(detail=True, methods=["get"])
    def invites(self, request, pk=None):  # type: ignore
        trip = self.get_object()
        pending = trip.invites.filter(status=TripInvite.Status.PENDING).select_related("inviter", "trip")
        return Response(TripInviteSerializer(pending, many=True).data)

    @action(detail=True, methods=["delete"], url_path=r"invites/(?P<email>[^/]+)", url_name="invite-detail")
    def cancel_invite(self, request, pk=None, email=None):  # type: ignore
        trip = self.get_object()
        deleted, _ = trip.invites.filter(email__iexact=email, status=TripInvite.Status.PENDING).delete()
        if not deleted:
            return Response({"detail": "Invite not found or already accepted."}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"invites/(?P<token>[0-9a-f]+)",
        url_name="invite-by-token",
        permission_classes=[permissions.AllowAny],
    )
    def invite_by_token(self, request, token=None):  # type: ignore
        invite = get_object_or_404(
            TripInvite.objects.select_related("trip", "inviter"), token=token, status=TripInvite.Status.PENDING
        )
        return Response(TripInviteSerializer(invite).data)
