"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import stripe
from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.campgrounds.models import Campground, Campsite, CampsiteBookedDate, SafetyAlert
from apps.payments.stripe_gateway import CheckoutSession, StripeGatewayError, StripeSessionNotFound
from apps.users.models import User


class BookingAPITestCase(APITestCase):
    def setUp(self) -> None:
        self.guest = User.objects.create_user("guest", email="guest@example.com", password="GuestPass123")
        self.other_guest = User.objects.create_user("other", email="other@example.com", password="OtherPass123")
        self.admin = User.objects.create_user(
            "admin", email="admin@example.com", password="AdminPass123", role=User.RoleChoices.ADMIN
        )
        self.owner = User.objects.create_user(
            "owner", email="owner@example.com", password="OwnerPass123", role=User.RoleChoices.OWNER
        )
        self.campground = Campground.objects.create(
            title="Lakeside Camp",
            description="Quiet spot by the lake.",
            location="Inle Lake",
            owner=self.owner,
        )
        self.campsite = Campsite.objects.create(
            campground=self.campground,
            name="Site A",
            price=Decimal("25.00"),
            capacity=4,
        )
        self.start = timezone.localdate() + timedelta(days=3)
        self.end = self.start + timedelta(days=2)
        self.client.force_authenticate(self.guest)

    def _payload(self, **overrides) -> dict:
        payload = {
            "start_date": str(self.start),
            "end_date": str(self.end),
            "campsite": self.campsite.pk,
            "guests": 2,
        }
        payload.update(overrides)
        return payload

    def _session(self, session_id: str = "cs_test_abc", **metadata) -> CheckoutSession:
        base = {
            "campground_id": str(self.campground.pk),
            "user_id": str(self.guest.pk),
            "campsite_id": str(self.campsite.pk),
            "start_date": str(self.start),
            "end_date": str(self.end),
            "total_days": "2",
            "total_price": "50.00",
            "guests": "2",
        }
        base.update(metadata)
        return CheckoutSession(
            id=session_id,
            url=None,
            payment_status="paid",
            status="complete",
            amount_total=5000,
            currency="usd",
            metadata=base,
        )

    def _booking(self, user=None, **fields) -> Booking:
        values = {
            "user": user or self.guest,
            "campground": self.campground,
            "campsite": self.campsite,
            "start_date": self.start,
            "end_date": self.end,
            "total_days": 2,
            "total_price": Decimal("50.00"),
            "paid": True,
            "status": Booking.Status.CONFIRMED,
        }
        values.update(fields)
        booking = Booking.objects.create(**values)
        if booking.campsite_id:
            CampsiteBookedDate.objects.create(
                booking=booking, campsite=booking.campsite, start_date=booking.start_date, end_date=booking.end_date
            )
        return booking


class BookingQuoteAPITests(BookingAPITestCase):
    def test_quote_prices_the_stay(self) -> None:
        url = reverse("booking-quote", kwargs={"campground_id": self.campground.pk})

        response = self.client.post(url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["booking"]["total_days"], 2)
        self.assertEqual(response.data["booking"]["total_price"], Decimal("50.00"))
        self.assertEqual(response.data["campground"]["id"], self.campground.pk)
        self.assertEqual(response.data["campsite"]["id"], self.campsite.pk)
        self.assertFalse(Booking.objects.exists())

    def test_quote_requires_authentication(self) -> None:
        self.client.force_authenticate(None)
        url = reverse("booking-quote", kwargs={"campground_id": self.campground.pk})

        response = self.client.post(url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_unknown_campground_is_not_found(self) -> None:
        url = reverse("booking-quote", kwargs={"campground_id": 999999})

        response = self.client.post(url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_past_dates_are_rejected(self) -> None:
        url = reverse("booking-quote", kwargs={"campground_id": self.campground.pk})
        today = timezone.localdate()

        response = self.client.post(
            url, self._payload(start_date=str(today), end_date=str(today + timedelta(days=1))), format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Booking dates must be in the future")

    def test_booked_campsite_is_rejected(self) -> None:
        self._booking(user=self.other_guest)
        url = reverse("booking-quote", kwargs={"campground_id": self.campground.pk})

        response = self.client.post(url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("already booked", response.data["detail"])

    def test_unacknowledged_safety_alerts_block_booking(self) -> None:
        now = timezone.now()
        alert = SafetyAlert.objects.create(
            campground=self.campground,
            title="Wildfire risk",
            description="Campfires are banned.",
            type=SafetyAlert.AlertType.FIRE,
            start_date=now - timedelta(hours=1),
            end_date=now + timedelta(days=3),
            requires_acknowledgement=True,
        )
        url = reverse("booking-quote", kwargs={"campground_id": self.campground.pk})

        response = self.client.post(url, self._payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Wildfire risk", response.data["detail"])

        ack_url = reverse("safety-alert-acknowledge", kwargs={"pk": alert.pk})
        self.assertEqual(self.client.post(ack_url).status_code, status.HTTP_201_CREATED)

        response = self.client.post(url, self._payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)


class CheckoutSessionAPITests(BookingAPITestCase):
    @patch("apps.payments.stripe_gateway.stripe.checkout.Session.create")
    def test_checkout_recomputes_total_on_server(self, create_session) -> None:
        create_session.return_value = {"id": "cs_test_new", "url": "https://checkout.stripe.test/cs_test_new"}
        url = reverse("booking-checkout", kwargs={"campground_id": self.campground.pk})

        response = self.client.post(url, self._payload(total_price="1.00"), format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["session_id"], "cs_test_new")
        self.assertEqual(response.data["session_url"], "https://checkout.stripe.test/cs_test_new")

        kwargs = create_session.call_args.kwargs
        self.assertEqual(kwargs["mode"], "payment")
        self.assertEqual(kwargs["line_items"][0]["price_data"]["unit_amount"], 5000)
        self.assertEqual(kwargs["metadata"]["user_id"], str(self.guest.pk))
        self.assertEqual(kwargs["metadata"]["campsite_id"], str(self.campsite.pk))
        self.assertEqual(kwargs["metadata"]["total_price"], "50.00")
        self.assertIn("session_id={CHECKOUT_SESSION_ID}", kwargs["success_url"])
        self.assertIn(f"campground_id={self.campground.pk}", kwargs["success_url"])
        self.assertTrue(kwargs["cancel_url"].endswith(f"/campgrounds/{self.campground.pk}"))

    @patch("apps.payments.stripe_gateway.stripe.checkout.Session.create")
    def test_provider_failure_is_bad_gateway(self, create_session) -> None:
        create_session.side_effect = stripe.APIConnectionError("network down")
        url = reverse("booking-checkout", kwargs={"campground_id": self.campground.pk})

        response = self.client.post(url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)


class PaymentSuccessAPITests(BookingAPITestCase):
    def _url(self, session_id: str | None = "cs_test_abc") -> str:
        url = reverse("booking-payment-success", kwargs={"campground_id": self.campground.pk})
        return f"{url}?session_id={session_id}" if session_id else url

    @patch("apps.payments.stripe_gateway.retrieve_checkout_session")
    def test_success_is_idempotent(self, retrieve) -> None:
        retrieve.return_value = self._session()

        with self.captureOnCommitCallbacks(execute=True):
            first = self.client.get(self._url())
            second = self.client.get(self._url())

        self.assertEqual(first.status_code, status.HTTP_200_OK, first.data)
        self.assertEqual(second.status_code, status.HTTP_200_OK, second.data)
        self.assertTrue(first.data["success"])
        self.assertTrue(first.data["created"])
        self.assertFalse(second.data["created"])
        self.assertIn("Payment already processed and booking confirmed", second.data["message"])
        self.assertEqual(first.data["booking"]["id"], second.data["booking"]["id"])
        self.assertEqual(Booking.objects.count(), 1)
        self.assertEqual(CampsiteBookedDate.objects.count(), 1)
        self.assertEqual(len(mail.outbox), 1)

    def test_missing_session_id(self) -> None:
        response = self.client.get(self._url(None))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @patch("apps.payments.stripe_gateway.retrieve_checkout_session")
    def test_unknown_session(self, retrieve) -> None:
        retrieve.side_effect = StripeSessionNotFound("Payment session not found")

        response = self.client.get(self._url("cs_missing"))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["detail"], "Payment session not found")

    @patch("apps.payments.stripe_gateway.retrieve_checkout_session")
    def test_unpaid_session(self, retrieve) -> None:
        session = self._session()
        retrieve.return_value = CheckoutSession(
            id=session.id,
            url=None,
            payment_status="unpaid",
            status="open",
            amount_total=5000,
            currency="usd",
            metadata=session.metadata,
        )

        response = self.client.get(self._url())

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Payment not completed")
        self.assertFalse(Booking.objects.exists())

    @patch("apps.payments.stripe_gateway.retrieve_checkout_session")
    def test_user_mismatch(self, retrieve) -> None:
        retrieve.return_value = self._session(user_id=str(self.other_guest.pk))

        response = self.client.get(self._url())

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["detail"], "User mismatch")
        self.assertFalse(Booking.objects.exists())

    @patch("apps.payments.stripe_gateway.retrieve_checkout_session")
    def test_provider_failure(self, retrieve) -> None:
        retrieve.side_effect = StripeGatewayError("Failed to retrieve payment session.")

        response = self.client.get(self._url())

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)


class BookingQueryAPITests(BookingAPITestCase):
    def test_list_hides_cancelled_unless_requested(self) -> None:
        active = self._booking()
        cancelled = self._booking(
            campsite=None,
            status=Booking.Status.CANCELLED,
            start_date=self.end,
            end_date=self.end + timedelta(days=1),
            total_days=1,
        )
        self._booking(user=self.other_guest, campsite=None)

        response = self.client.get(reverse("booking-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data], [active.pk])

        response = self.client.get(reverse("booking-list"), {"show_cancelled": "true"})
        self.assertEqual({item["id"] for item in response.data}, {active.pk, cancelled.pk})

    @patch("apps.payments.stripe_gateway.retrieve_checkout_session")
    def test_detail_includes_provider_session(self, retrieve) -> None:
        booking = self._booking(session_id="cs_test_abc")
        retrieve.return_value = self._session()

        response = self.client.get(reverse("booking-detail", kwargs={"pk": booking.pk}))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["session"]["id"], "cs_test_abc")

    @patch("apps.payments.stripe_gateway.retrieve_checkout_session")
    def test_detail_survives_provider_failure(self, retrieve) -> None:
        booking = self._booking(session_id="cs_test_abc")
        retrieve.side_effect = StripeGatewayError("down")

        response = self.client.get(reverse("booking-detail", kwargs={"pk": booking.pk}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data["session"])

    def test_detail_of_someone_elses_booking_is_forbidden(self) -> None:
        booking = self._booking(user=self.other_guest)

        response = self.client.get(reverse("booking-detail", kwargs={"pk": booking.pk}))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.get(reverse("booking-detail", kwargs={"pk": booking.pk}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_missing_booking_is_not_found(self) -> None:
        response = self.client.get(reverse("booking-detail", kwargs={"pk": 999999}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cancel_releases_dates_once(self) -> None:
        booking = self._booking()
        url = reverse("booking-cancel", kwargs={"pk": booking.pk})

        response = self.client.patch(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CANCELLED)
        self.assertFalse(CampsiteBookedDate.objects.filter(booking=booking).exists())

        response = self.client.patch(url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_guest_cannot_cancel(self) -> None:
        booking = self._booking(user=self.other_guest)

        response = self.client.patch(reverse("booking-cancel", kwargs={"pk": booking.pk}))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)
