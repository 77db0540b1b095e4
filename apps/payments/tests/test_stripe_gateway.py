"""Tests for the Stripe Checkout gateway."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest
import stripe
from django.test import override_settings

from apps.payments import stripe_gateway


def test_to_cents_rounds_half_up():
    assert stripe_gateway.to_cents(Decimal("10.005")) == 1001
    assert stripe_gateway.to_cents(Decimal("25")) == 2500


def test_checkout_session_normalises_stripe_payload():
    session = stripe_gateway.CheckoutSession.from_stripe(
        {
            "id": "cs_1",
            "url": "https://checkout.stripe.test/cs_1",
            "payment_status": "paid",
            "status": "complete",
            "amount_total": 5000,
            "currency": "usd",
            "metadata": {"user_id": 4, "campground_id": "9"},
        }
    )

    assert session.is_paid
    assert session.metadata == {"user_id": "4", "campground_id": "9"}


@patch("apps.payments.stripe_gateway.stripe.checkout.Session.retrieve")
def test_missing_session_maps_to_not_found(retrieve):
    retrieve.side_effect = stripe.InvalidRequestError(
        "No such checkout.session: cs_missing", "id", code="resource_missing", http_status=404
    )

    with pytest.raises(stripe_gateway.StripeSessionNotFound) as excinfo:
        stripe_gateway.retrieve_checkout_session("cs_missing")
    assert excinfo.value.status_code == 404


@patch("apps.payments.stripe_gateway.stripe.checkout.Session.retrieve")
def test_provider_errors_map_to_bad_gateway(retrieve):
    retrieve.side_effect = stripe.APIConnectionError("network down")

    with pytest.raises(stripe_gateway.StripeGatewayError) as excinfo:
        stripe_gateway.retrieve_checkout_session("cs_1")
    assert excinfo.value.status_code == 502


@override_settings(STRIPE_SECRET_KEY="")
def test_missing_secret_key_is_reported():
    with pytest.raises(stripe_gateway.StripeGatewayError) as excinfo:
        stripe_gateway.retrieve_checkout_session("cs_1")
    assert excinfo.value.status_code == 503


def test_bad_webhook_signature_is_rejected():
    with pytest.raises(stripe_gateway.StripeSignatureError):
        stripe_gateway.construct_webhook_event(b'{"id": "evt_1"}', "t=1,v1=bogus")
