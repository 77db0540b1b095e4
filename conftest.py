"""
Pytest configuration and shared fixtures.
"""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from apps.campgrounds.models import Campground, Campsite
from apps.payments.stripe_gateway import CheckoutSession
from apps.users.models import User


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def guest(db) -> User:
    return User.objects.create_user("guest", email="guest@example.com", password="GuestPass123")


@pytest.fixture
def owner(db) -> User:
    return User.objects.create_user(
        "owner",
        email="owner@example.com",
        password="OwnerPass123",
        role=User.RoleChoices.OWNER,
    )


@pytest.fixture
def platform_admin(db) -> User:
    return User.objects.create_user(
        "platform-admin",
        email="admin@example.com",
        password="AdminPass123",
        role=User.RoleChoices.ADMIN,
    )


@pytest.fixture
def campground(owner) -> Campground:
    return Campground.objects.create(
        title="Lakeside Camp",
        description="Quiet spot by the lake.",
        location="Inle Lake",
        owner=owner,
    )


@pytest.fixture
def campsite(campground) -> Campsite:
    return Campsite.objects.create(
        campground=campground,
        name="Site A",
        price=Decimal("25.00"),
        capacity=4,
    )


@pytest.fixture
def stay_dates():
    start = timezone.localdate() + timedelta(days=3)
    return start, start + timedelta(days=2)


@pytest.fixture
def make_paid_session(stay_dates):
    """Build a paid checkout session as Stripe would return it."""

    def _make(*, user, campground, campsite=None, session_id="cs_test_123", payment_status="paid", **overrides):
        start, end = stay_dates
        metadata = {
            "campground_id": str(campground.pk),
            "user_id": str(user.pk),
            "campsite_id": str(campsite.pk) if campsite else "",
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "total_days": str((end - start).days),
            "total_price": "50.00",
            "guests": "2",
        }
        metadata.update(overrides)
        return CheckoutSession(
            id=session_id,
            url=None,
            payment_status=payment_status,
            status="complete",
            amount_total=5000,
            currency="usd",
            metadata=metadata,
        )

    return _make
