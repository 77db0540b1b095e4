"""API views for the booking domain."""

from __future__ import annotations

from functools import partial

from django.db import transaction  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.campgrounds.models import Campground
from apps.campgrounds.serializers import CampgroundShortSerializer, CampsiteShortSerializer
from apps.payments.stripe_gateway import StripeGatewayError

from . import services
from .models import Booking
from .permissions import IsBookingStakeholder
from .serializers import BookingRequestSerializer, BookingSerializer
from .tasks import notify_booking_cancelled


def _error_response(exc: Exception) -> Response:
    return Response({"detail": str(exc)}, status=getattr(exc, "status_code", status.HTTP_400_BAD_REQUEST))


class _CampgroundBookingView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def _quote(self, request, campground_id: int) -> services.BookingQuote:
        campground = get_object_or_404(Campground, pk=campground_id)
        serializer = BookingRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return services.build_booking_quote(
            user=request.user,
            campground=campground,
            start_date=data["start_date"],
            end_date=data["end_date"],
            campsite_id=data.get("campsite"),
            guests=data["guests"],
        )


class BookingQuoteView(_CampgroundBookingView):
    """Validate and price a stay before checkout."""

    def post(self, request, campground_id: int):  # type: ignore
        try:
            quote = self._quote(request, campground_id)
        except services.BookingServiceError as exc:
            return _error_response(exc)

        return Response(
            {
                "booking": {
                    "start_date": quote.start_date,
                    "end_date": quote.end_date,
                    "total_days": quote.total_days,
                    "price_per_night": quote.price_per_night,
                    "total_price": quote.total_price,
                    "guests": quote.guests,
                },
                "campground": CampgroundShortSerializer(quote.campground).data,
                "campsite": CampsiteShortSerializer(quote.campsite).data if quote.campsite else None,
            }
        )


class CheckoutSessionView(_CampgroundBookingView):
    """Open a Stripe checkout session for a stay; the total is always recomputed here."""

    def post(self, request, campground_id: int):  # type: ignore
        try:
            quote = self._quote(request, campground_id)
            session = services.create_checkout_session(quote, user=request.user)
        except (services.BookingServiceError, StripeGatewayError) as exc:
            return _error_response(exc)
        return Response({"session_id": session.id, "session_url": session.url})


class PaymentSuccessView(APIView):
    """Client redirect target after checkout; converts the paid session into a booking."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, campground_id: int):  # type: ignore
        session_id = request.query_params.get("session_id")
        if not session_id:
            return Response({"detail": "Session ID is required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            result = services.confirm_checkout_session(
                session_id,
                user=request.user,
                campground_id=campground_id,
            )
        except (services.BookingServiceError, StripeGatewayError) as exc:
            return _error_response(exc)

        return Response(
            {
                "success": True,
                "created": result.created,
                "message": result.message,
                "booking": BookingSerializer(result.booking).data,
            },
            status=status.HTTP_200_OK,
        )


class BookingViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """The current user's bookings; admins may open and cancel any booking."""

    queryset = Booking.objects.select_related("user", "campground", "campsite").all()
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated, IsBookingStakeholder]
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if self.action != "list":
            return qs
        qs = qs.filter(user=self.request.user)
        show_cancelled = self.request.query_params.get("show_cancelled", "").lower() in {"1", "true", "yes"}
        if not show_cancelled:
            qs = qs.active()
        return qs.order_by("-created_at")

    def retrieve(self, request, *args, **kwargs):  # type: ignore
        booking = self.get_object()
        data = dict(self.get_serializer(booking).data)
        data["session"] = services.retrieve_session_summary(booking)
        return Response(data)

    @action(detail=True, methods=["patch"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        try:
            booking = services.cancel_booking(booking, cancelled_by=request.user)
        except services.BookingServiceError as exc:
            return _error_response(exc)
        transaction.on_commit(partial(notify_booking_cancelled.delay, booking.pk), robust=True)
        return Response(self.get_serializer(booking).data, status=status.HTTP_200_OK)
