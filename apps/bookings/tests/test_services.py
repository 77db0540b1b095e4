"""Unit tests for booking pricing, date and availability rules."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.bookings import services
from apps.bookings.models import Booking
from apps.campgrounds.models import Campground, Campsite, CampsiteBookedDate, SafetyAlert, SafetyAlertAcknowledgement


def _reserve(user, campsite, start, end, status=Booking.Status.CONFIRMED):
    booking = Booking.objects.create(
        user=user,
        campground=campsite.campground,
        campsite=campsite,
        start_date=start,
        end_date=end,
        total_days=(end - start).days,
        total_price=Decimal("10.00"),
        paid=True,
        status=status,
    )
    CampsiteBookedDate.objects.create(booking=booking, campsite=campsite, start_date=start, end_date=end)
    return booking


def test_calculate_days_and_price_counts_nights():
    nights, total = services.calculate_days_and_price(date(2030, 5, 1), date(2030, 5, 4), Decimal("19.99"))

    assert nights == 3
    assert total == Decimal("59.97")


@pytest.mark.parametrize(
    "offset_start, offset_end, message",
    [
        (0, 2, "Booking dates must be in the future"),
        (-3, 2, "Booking dates must be in the future"),
        (3, 3, "End date must be after start date"),
        (4, 2, "End date must be after start date"),
    ],
)
def test_validate_booking_dates_rejects_invalid_ranges(offset_start, offset_end, message):
    today = date(2030, 1, 10)

    with pytest.raises(services.InvalidBookingDatesError, match=message):
        services.validate_booking_dates(
            today + timedelta(days=offset_start),
            today + timedelta(days=offset_end),
            today=today,
        )


def test_validate_booking_dates_accepts_tomorrow():
    today = date(2030, 1, 10)
    services.validate_booking_dates(today + timedelta(days=1), today + timedelta(days=2), today=today)


@pytest.mark.django_db
def test_overlapping_booking_is_a_conflict(guest, campsite, stay_dates):
    start, end = stay_dates
    _reserve(guest, campsite, start, end)

    with pytest.raises(services.BookingConflictError):
        services.ensure_campsite_available(campsite, start + timedelta(days=1), end + timedelta(days=1))


@pytest.mark.django_db
def test_back_to_back_stays_do_not_conflict(guest, campsite, stay_dates):
    start, end = stay_dates
    _reserve(guest, campsite, start, end)

    services.ensure_campsite_available(campsite, end, end + timedelta(days=2))


@pytest.mark.django_db
def test_cancelled_bookings_release_dates(guest, campsite, stay_dates):
    start, end = stay_dates
    _reserve(guest, campsite, start, end, status=Booking.Status.CANCELLED)

    services.ensure_campsite_available(campsite, start, end)


@pytest.mark.django_db
def test_capacity_and_availability_are_enforced(campsite, stay_dates):
    start, end = stay_dates

    with pytest.raises(services.CampsiteUnavailableError, match="capacity"):
        services.ensure_campsite_available(campsite, start, end, guests=5)

    campsite.availability = False
    campsite.save(update_fields=["availability"])
    with pytest.raises(services.CampsiteUnavailableError, match="not available"):
        services.ensure_campsite_available(campsite, start, end)


@pytest.mark.django_db
def test_current_alerts_must_be_acknowledged(guest, campground, campsite):
    now = timezone.now()
    alert = SafetyAlert.objects.create(
        campground=campground,
        title="Flash flood warning",
        description="River levels are rising.",
        severity=SafetyAlert.Severity.HIGH,
        type=SafetyAlert.AlertType.FLOOD,
        start_date=now - timedelta(hours=1),
        end_date=now + timedelta(days=1),
        requires_acknowledgement=True,
    )
    SafetyAlert.objects.create(
        campground=campground,
        title="Old bear sighting",
        description="Resolved.",
        start_date=now - timedelta(days=10),
        end_date=now - timedelta(days=5),
        requires_acknowledgement=True,
    )

    with pytest.raises(services.SafetyAlertsNotAcknowledgedError) as excinfo:
        services.ensure_safety_alerts_acknowledged(guest, campground, campsite)
    assert "Flash flood warning" in str(excinfo.value)
    assert "Old bear sighting" not in str(excinfo.value)

    SafetyAlertAcknowledgement.objects.create(alert=alert, user=guest)
    services.ensure_safety_alerts_acknowledged(guest, campground, campsite)


@pytest.mark.django_db
def test_campsite_alert_only_applies_when_campsite_is_booked(guest, campground, campsite):
    now = timezone.now()
    SafetyAlert.objects.create(
        campsite=campsite,
        title="Fallen tree",
        description="Site A access path blocked.",
        start_date=now - timedelta(hours=1),
        end_date=now + timedelta(days=1),
        requires_acknowledgement=True,
    )

    services.ensure_safety_alerts_acknowledged(guest, campground)
    with pytest.raises(services.SafetyAlertsNotAcknowledgedError):
        services.ensure_safety_alerts_acknowledged(guest, campground, campsite)


@pytest.mark.django_db
def test_quote_uses_starting_price_without_campsite(guest, campground, campsite, stay_dates):
    Campsite.objects.create(campground=campground, name="Site B", price=Decimal("15.00"))
    Campsite.objects.create(campground=campground, name="Closed", price=Decimal("5.00"), availability=False)
    start, end = stay_dates

    quote = services.build_booking_quote(user=guest, campground=campground, start_date=start, end_date=end)

    assert quote.campsite is None
    assert quote.price_per_night == Decimal("15.00")
    assert quote.total_price == Decimal("30.00")


@pytest.mark.django_db
def test_quote_rejects_campsite_from_another_campground(guest, campground, owner, stay_dates):
    other = Campground.objects.create(title="Hill Camp", description="-", location="Kalaw", owner=owner)
    foreign_site = Campsite.objects.create(campground=other, name="Ridge", price=Decimal("30.00"))
    start, end = stay_dates

    with pytest.raises(services.BookingServiceError, match="does not belong"):
        services.build_booking_quote(
            user=guest,
            campground=campground,
            campsite_id=foreign_site.pk,
            start_date=start,
            end_date=end,
        )


@pytest.mark.django_db
def test_unknown_campsite_is_not_found(guest, campground, stay_dates):
    start, end = stay_dates

    with pytest.raises(services.BookingServiceError) as excinfo:
        services.build_booking_quote(
            user=guest, campground=campground, campsite_id=999999, start_date=start, end_date=end
        )
    assert excinfo.value.status_code == 404


@pytest.mark.django_db
def test_cancel_booking_releases_booked_dates(guest, campsite, stay_dates):
    start, end = stay_dates
    booking = _reserve(guest, campsite, start, end)

    cancelled = services.cancel_booking(booking, cancelled_by=guest)

    assert cancelled.status == Booking.Status.CANCELLED
    assert cancelled.cancelled_at is not None
    assert not CampsiteBookedDate.objects.filter(booking=booking).exists()
    with pytest.raises(services.BookingAlreadyCancelledError):
        services.cancel_booking(cancelled)
