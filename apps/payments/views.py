"""Stripe webhook endpoint."""

from __future__ import annotations

import structlog
from rest_framework import status  # type: ignore
from rest_framework.permissions import AllowAny  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.services import BookingServiceError, confirm_checkout_session

from .stripe_gateway import CheckoutSession, StripeGatewayError, construct_webhook_event

logger = structlog.get_logger(__name__)


class StripeWebhookView(APIView):
    """Receives Stripe events; completed checkout sessions become bookings.

    Stripe retries deliveries that do not answer 2xx, so a session whose
    booking cannot be created for a permanent reason (unpaid, bad metadata)
    is acknowledged with 200 and logged rather than retried forever.
    """

    permission_classes = [AllowAny]
    authentication_classes: list = []

    def post(self, request):  # type: ignore
        try:
            event = construct_webhook_event(request.body, request.META.get("HTTP_STRIPE_SIGNATURE"))
        except StripeGatewayError as exc:
            logger.warning("stripe_webhook_rejected", error=str(exc))
            return Response({"detail": str(exc)}, status=exc.status_code)

        event_type = event["type"]
        logger.info("stripe_webhook_received", event_id=event["id"], event_type=event_type)

        if event_type != "checkout.session.completed":
            return Response({"received": True})

        session = CheckoutSession.from_stripe(event["data"]["object"])
        try:
            result = confirm_checkout_session(session.id, session=session)
        except StripeGatewayError as exc:
            return Response({"detail": str(exc)}, status=exc.status_code)
        except BookingServiceError as exc:
            logger.warning("stripe_webhook_session_skipped", session_id=session.id, error=str(exc))
            return Response({"received": True, "booking": None, "detail": str(exc)})

        return Response({"received": True, "booking": result.booking.pk, "created": result.created})
