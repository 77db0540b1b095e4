"""Tests for the Stripe webhook endpoint."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.urls import reverse

from apps.bookings.models import Booking
from apps.campgrounds.models import Campground, Campsite
from apps.payments.stripe_gateway import StripeSignatureError

pytestmark = pytest.mark.django_db


def _event(session, event_type="checkout.session.completed"):
    return {
        "id": "evt_test_1",
        "type": event_type,
        "data": {
            "object": {
                "id": session.id,
                "url": None,
                "payment_status": session.payment_status,
                "status": session.status,
                "amount_total": session.amount_total,
                "currency": session.currency,
                "metadata": session.metadata,
            }
        },
    }


@patch("apps.payments.views.construct_webhook_event")
def test_completed_session_creates_booking_once(construct, api_client, guest, campground, campsite, make_paid_session):
    construct.return_value = _event(make_paid_session(user=guest, campground=campground, campsite=campsite))
    url = reverse("stripe-webhook")

    first = api_client.post(url, b"{}", content_type="application/json", HTTP_STRIPE_SIGNATURE="sig")
    second = api_client.post(url, b"{}", content_type="application/json", HTTP_STRIPE_SIGNATURE="sig")

    assert first.status_code == 200
    assert first.data["created"] is True
    assert second.data["created"] is False
    booking = Booking.objects.get()
    assert booking.user == guest
    assert booking.references_synced_at is not None


@patch("apps.payments.views.construct_webhook_event")
def test_other_events_are_acknowledged(construct, api_client, guest, campground, make_paid_session):
    construct.return_value = _event(
        make_paid_session(user=guest, campground=campground), event_type="payment_intent.created"
    )

    response = api_client.post(reverse("stripe-webhook"), b"{}", content_type="application/json")

    assert response.status_code == 200
    assert response.data == {"received": True}
    assert not Booking.objects.exists()


@patch("apps.payments.views.construct_webhook_event")
def test_unpaid_session_is_acknowledged_without_booking(construct, api_client, guest, campground, make_paid_session):
    construct.return_value = _event(make_paid_session(user=guest, campground=campground, payment_status="unpaid"))

    response = api_client.post(reverse("stripe-webhook"), b"{}", content_type="application/json")

    assert response.status_code == 200
    assert response.data["booking"] is None
    assert not Booking.objects.exists()


@patch("apps.payments.views.construct_webhook_event")
def test_invalid_signature_is_rejected(construct, api_client):
    construct.side_effect = StripeSignatureError("Invalid Stripe signature.")

    response = api_client.post(reverse("stripe-webhook"), b"{}", content_type="application/json")

    assert response.status_code == 400


@pytest.mark.django_db(transaction=True)
@patch("apps.payments.views.construct_webhook_event")
def test_session_for_deleted_campsite_still_books(construct, api_client, guest, campground, campsite, make_paid_session):
    construct.return_value = _event(make_paid_session(user=guest, campground=campground, campsite=campsite))
    Campsite.objects.filter(pk=campsite.pk).delete()

    response = api_client.post(reverse("stripe-webhook"), b"{}", content_type="application/json")

    assert response.status_code == 200
    assert response.data["created"] is True
    booking = Booking.objects.get()
    assert booking.campsite_id is None
    assert booking.campground_id == campground.pk


@pytest.mark.django_db(transaction=True)
@patch("apps.payments.views.construct_webhook_event")
def test_session_for_deleted_campground_is_acknowledged(construct, api_client, guest, campground, make_paid_session):
    construct.return_value = _event(make_paid_session(user=guest, campground=campground))
    Campground.objects.filter(pk=campground.pk).delete()

    response = api_client.post(reverse("stripe-webhook"), b"{}", content_type="application/json")

    assert response.status_code == 200
    assert response.data["booking"] is None
    assert "no longer exists" in response.data["detail"]
    assert not Booking.objects.exists()
