"""Campground, campsite and safety alert API views."""

from __future__ import annotations

import logging

from django.db.models import ProtectedError, Q  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from .filters import CampgroundFilterSet
from .models import Campground, Campsite, SafetyAlert, SafetyAlertAcknowledgement
from .permissions import IsCampgroundOwnerOrAdmin
from .serializers import (
    CampgroundDetailSerializer,
    CampgroundSerializer,
    CampsiteSerializer,
    SafetyAlertSerializer,
    SafetyAlertTargetSerializer,
)

logger = logging.getLogger(__name__)


class CampgroundViewSet(viewsets.ModelViewSet):
    """Public campground catalogue; owners and admins manage listings."""

    queryset = Campground.objects.select_related("owner").prefetch_related("campsites")
    permission_classes = [IsCampgroundOwnerOrAdmin]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = CampgroundFilterSet
    ordering_fields = ["title", "created_at"]
    lookup_value_regex = r"\d+"

    def get_serializer_class(self):  # type: ignore
        if self.action == "retrieve":
            return CampgroundDetailSerializer
        if self.action == "campsites":
            return CampsiteSerializer
        if self.action == "safety_alerts":
            return SafetyAlertSerializer
        return CampgroundSerializer

    def perform_create(self, serializer):  # type: ignore
        campground = serializer.save(owner=self.request.user)
        logger.info("Campground %s created by user %s", campground.pk, self.request.user.pk)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        campground = self.get_object()
        try:
            campground.delete()
        except ProtectedError:
            return Response(
                {"detail": "Campground has bookings and cannot be deleted."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        logger.info("Campground %s deleted by user %s", kwargs.get("pk"), request.user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get", "post"])
    def campsites(self, request, pk=None):  # type: ignore
        campground = self.get_object()
        if request.method == "GET":
            serializer = CampsiteSerializer(campground.campsites.all(), many=True)
            return Response(serializer.data)
        serializer = CampsiteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save(campground=campground)
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get", "post"], url_path="safety-alerts")
    def safety_alerts(self, request, pk=None):  # type: ignore
        campground = self.get_object()
        if request.method == "GET":
            alerts = (
                SafetyAlert.objects.current()
                .filter(is_public=True)
                .filter(Q(campground=campground) | Q(campsite__campground=campground))
            )
            serializer = SafetyAlertSerializer(alerts, many=True, context={"request": request})
            return Response(serializer.data)

        target = SafetyAlertTargetSerializer(data=request.data)
        target.is_valid(raise_exception=True)
        serializer = SafetyAlertSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        campsite_id = target.validated_data.get("campsite")
        if campsite_id:
            campsite = campground.campsites.filter(pk=campsite_id).first()
            if campsite is None:
                return Response(
                    {"detail": "Campsite does not belong to this campground."},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            alert = serializer.save(campsite=campsite, created_by=request.user)
        else:
            alert = serializer.save(campground=campground, created_by=request.user)
        logger.info("Safety alert %s created on campground %s", alert.pk, campground.pk)
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class CampsiteViewSet(
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Campsite.objects.select_related("campground")
    serializer_class = CampsiteSerializer
    permission_classes = [IsCampgroundOwnerOrAdmin]
    lookup_value_regex = r"\d+"


class SafetyAlertViewSet(
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = SafetyAlert.objects.select_related("campground", "campsite__campground")
    serializer_class = SafetyAlertSerializer
    permission_classes = [IsCampgroundOwnerOrAdmin]
    lookup_value_regex = r"\d+"

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAuthenticated])
    def acknowledge(self, request, pk=None):  # type: ignore
        alert = self.get_object()
        ack, created = SafetyAlertAcknowledgement.objects.get_or_create(alert=alert, user=request.user)
        return Response(
            {
                "alert": alert.pk,
                "acknowledged_at": ack.acknowledged_at,
                "created": created,
            },
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )
