"""Stripe Checkout gateway.

Thin wrapper over the Stripe SDK used by the booking flow. All SDK errors
are translated into :class:`StripeGatewayError` carrying the HTTP status the
API should answer with, so views never deal with SDK exception types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import stripe
from django.conf import settings  # type: ignore

from shared.domain.value_objects import Money

logger = logging.getLogger(__name__)


class StripeGatewayError(Exception):
    """Failure talking to Stripe."""

    status_code = 502

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class StripeSessionNotFound(StripeGatewayError):
    status_code = 404


class StripeSignatureError(StripeGatewayError):
    status_code = 400


@dataclass(frozen=True)
class CheckoutSession:
    """The subset of a Stripe Checkout Session the booking flow relies on."""

    id: str
    url: str | None
    payment_status: str
    status: str | None
    amount_total: int | None
    currency: str | None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    @classmethod
    def from_stripe(cls, obj: Any) -> "CheckoutSession":
        def _get(key: str, default: Any = None) -> Any:
            if isinstance(obj, dict):
                return obj.get(key, default)
            return getattr(obj, key, default)

        metadata = _get("metadata") or {}
        return cls(
            id=_get("id"),
            url=_get("url"),
            payment_status=_get("payment_status") or "",
            status=_get("status"),
            amount_total=_get("amount_total"),
            currency=_get("currency"),
            metadata={str(k): str(v) for k, v in metadata.items()},
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "payment_status": self.payment_status,
            "status": self.status,
            "amount_total": self.amount_total,
            "currency": self.currency,
            "metadata": self.metadata,
        }


def _get_stripe_api_key() -> str:
    api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
    if not api_key:
        raise StripeGatewayError("Stripe secret key not configured.", status_code=503)
    return api_key


def to_cents(amount: Decimal) -> int:
    """Convert a decimal amount to integer minor units."""
    return Money(amount).minor_units


def create_checkout_session(
    *,
    product_name: str,
    description: str,
    amount: Decimal,
    success_url: str,
    cancel_url: str,
    metadata: dict[str, Any],
    customer_email: str | None = None,
    idempotency_key: str | None = None,
) -> CheckoutSession:
    """Create a one-item hosted checkout session in payment mode."""
    params: dict[str, Any] = {
        "payment_method_types": ["card"],
        "mode": "payment",
        "line_items": [
            {
                "price_data": {
                    "currency": getattr(settings, "STRIPE_CURRENCY", "usd"),
                    "product_data": {"name": product_name, "description": description},
                    "unit_amount": to_cents(amount),
                },
                "quantity": 1,
            }
        ],
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": {key: str(value) for key, value in metadata.items()},
    }
    if customer_email:
        params["customer_email"] = customer_email

    if idempotency_key:
        params["idempotency_key"] = idempotency_key

    try:
        session = stripe.checkout.Session.create(api_key=_get_stripe_api_key(), **params)
    except stripe.StripeError as exc:
        logger.error("Stripe checkout session creation failed: %s", exc)
        raise StripeGatewayError("Failed to create checkout session.") from exc

    checkout = CheckoutSession.from_stripe(session)
    logger.info("Stripe checkout session %s created", checkout.id)
    return checkout


def retrieve_checkout_session(session_id: str) -> CheckoutSession:
    """Fetch a checkout session; unknown identifiers raise ``StripeSessionNotFound``."""
    try:
        session = stripe.checkout.Session.retrieve(session_id, api_key=_get_stripe_api_key())
    except stripe.InvalidRequestError as exc:
        if getattr(exc, "http_status", None) == 404 or getattr(exc, "code", None) == "resource_missing":
            raise StripeSessionNotFound("Payment session not found") from exc
        logger.error("Stripe rejected session lookup %s: %s", session_id, exc)
        raise StripeGatewayError("Failed to retrieve payment session.") from exc
    except stripe.StripeError as exc:
        logger.error("Stripe session lookup %s failed: %s", session_id, exc)
        raise StripeGatewayError("Failed to retrieve payment session.") from exc
    return CheckoutSession.from_stripe(session)


def construct_webhook_event(payload: bytes, signature: str | None):
    """Verify the webhook signature and return the parsed event."""
    secret = getattr(settings, "STRIPE_WEBHOOK_SECRET", "")
    if not secret:
        raise StripeGatewayError("Stripe webhook secret not configured.", status_code=503)
    try:
        return stripe.Webhook.construct_event(payload, signature or "", secret)
    except ValueError as exc:
        raise StripeSignatureError("Invalid payload.") from exc
    except stripe.SignatureVerificationError as exc:
        raise StripeSignatureError("Invalid Stripe signature.") from exc
