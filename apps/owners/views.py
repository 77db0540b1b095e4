"""Owner onboarding and owner dashboard API views."""

from __future__ import annotations

from django.db import IntegrityError, transaction  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import generics, mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.models import Booking
from apps.bookings.serializers import BookingSerializer
from apps.users.permissions import IsOwnerOrAdmin, IsPlatformAdmin, is_platform_admin

from . import services
from .models import OwnerApplication
from .serializers import OwnerApplicationSerializer, ReviewDecisionSerializer


class OwnerApplyView(APIView):
    """Submit an application to become a campground owner."""

    permission_classes = [permissions.IsAuthenticated]

    already_applied = "You have already submitted an application."

    def post(self, request):  # type: ignore
        user = request.user
        if user.is_owner() or is_platform_admin(user):
            return Response({"detail": "You are already allowed to list campgrounds."}, status=status.HTTP_400_BAD_REQUEST)
        if OwnerApplication.objects.filter(user=user).exists():
            return Response({"detail": self.already_applied}, status=status.HTTP_400_BAD_REQUEST)
        serializer = OwnerApplicationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            with transaction.atomic():
                serializer.save(user=user)
        except IntegrityError:
            # A concurrent request created the application after the check above.
            return Response({"detail": self.already_applied}, status=status.HTTP_400_BAD_REQUEST)
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class OwnerApplicationView(APIView):
    """The current user's application. Editing a rejected application resubmits it."""

    permission_classes = [permissions.IsAuthenticated]

    def _get_application(self, request):
        return OwnerApplication.objects.select_related("user", "reviewed_by").filter(user=request.user).first()

    def get(self, request):  # type: ignore
        application = self._get_application(request)
        if application is None:
            return Response({"detail": "No application found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(OwnerApplicationSerializer(application).data)

    def put(self, request):  # type: ignore
        application = self._get_application(request)
        if application is None:
            return Response({"detail": "No application found."}, status=status.HTTP_404_NOT_FOUND)
        if application.status == OwnerApplication.Status.APPROVED:
            return Response(
                {"detail": "Approved applications can no longer be changed."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        serializer = OwnerApplicationSerializer(application, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        extra = {}
        if application.status == OwnerApplication.Status.REJECTED:
            extra = {"status": OwnerApplication.Status.PENDING, "review_notes": "", "reviewed_at": None}
        serializer.save(**extra)
        return Response(serializer.data)


class OwnerApplicationAdminViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Admin review queue for owner applications."""

    queryset = OwnerApplication.objects.select_related("user", "reviewed_by").all()
    serializer_class = OwnerApplicationSerializer
    permission_classes = [IsPlatformAdmin]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["status", "business_type"]
    lookup_value_regex = r"\d+"

    def _decide(self, request, decide):
        application = self.get_object()
        serializer = ReviewDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            application = decide(application, reviewer=request.user, notes=serializer.validated_data["notes"])
        except services.OwnerApplicationError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(self.get_serializer(application).data)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        return self._decide(request, services.approve_application)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        return self._decide(request, services.reject_application)

    @action(detail=True, methods=["post"])
    def review(self, request, pk=None):  # type: ignore
        application = self.get_object()
        try:
            application = services.mark_under_review(application, reviewer=request.user)
        except services.OwnerApplicationError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        return Response(self.get_serializer(application).data)


class OwnerBookingsView(generics.ListAPIView):
    """Bookings made on the current owner's campgrounds."""

    serializer_class = BookingSerializer
    permission_classes = [IsOwnerOrAdmin]

    def get_queryset(self):  # type: ignore
        qs = Booking.objects.select_related("user", "campground", "campsite")
        user = self.request.user
        if not is_platform_admin(user):
            qs = qs.filter(campground__owner=user)
        campground_id = self.request.query_params.get("campground")
        if campground_id and campground_id.isdigit():
            qs = qs.filter(campground_id=int(campground_id))
        booking_status = self.request.query_params.get("status")
        if booking_status:
            qs = qs.filter(status=booking_status)
        return qs.order_by("-created_at")
