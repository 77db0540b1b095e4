"""Domain services for booking workflows.

Covers the whole booking lifecycle: quoting a stay, opening a Stripe
checkout session for it, turning a paid session into exactly one booking,
propagating that booking to the campsite calendar and the guest's inbox,
and cancelling it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from functools import partial
from typing import Any, TYPE_CHECKING

import structlog
from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from apps.campgrounds.models import Campground, Campsite, CampsiteBookedDate, SafetyAlert
from apps.payments import stripe_gateway
from apps.payments.stripe_gateway import CheckoutSession
from shared.domain.value_objects import DateRange, Money

from .models import Booking

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from apps.users.models import User

logger = structlog.get_logger(__name__)


class BookingServiceError(Exception):
    """Base error for booking workflows, carrying the HTTP status to answer with."""

    status_code = 400

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidBookingDatesError(BookingServiceError):
    pass


class BookingConflictError(BookingServiceError):
    """Raised when a campsite is busy for requested dates."""


class CampsiteUnavailableError(BookingServiceError):
    pass


class SafetyAlertsNotAcknowledgedError(BookingServiceError):
    def __init__(self, alerts: list[SafetyAlert]) -> None:
        titles = ", ".join(alert.title for alert in alerts)
        super().__init__(
            f"You must acknowledge the following safety alerts before booking: {titles}"
        )
        self.alerts = alerts


class PaymentNotCompletedError(BookingServiceError):
    pass


class PaymentUserMismatchError(BookingServiceError):
    status_code = 403


class PaymentCampgroundMismatchError(BookingServiceError):
    pass


class InvalidSessionMetadataError(BookingServiceError):
    pass


class BookingAlreadyCancelledError(BookingServiceError):
    pass


@dataclass(frozen=True)
class BookingQuote:
    campground: Campground
    campsite: Campsite | None
    start_date: date
    end_date: date
    guests: int
    total_days: int
    price_per_night: Decimal
    total_price: Decimal

    def metadata_for(self, user) -> dict[str, str]:
        return {
            "campground_id": str(self.campground.pk),
            "user_id": str(user.pk),
            "campsite_id": str(self.campsite.pk) if self.campsite else "",
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "total_days": str(self.total_days),
            "total_price": str(self.total_price),
            "guests": str(self.guests),
        }


@dataclass(frozen=True)
class PaymentConfirmation:
    booking: Booking
    created: bool
    message: str


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def calculate_days_and_price(start_date: date, end_date: date, price_per_night) -> tuple[int, Decimal]:
    """Return ``(nights, total)`` for a stay at a flat nightly price."""
    nights = len(DateRange(start_date, end_date))
    total = (Money(price_per_night) * nights).quantize()
    return nights, total.amount


def validate_booking_dates(start_date: date, end_date: date, *, today: date | None = None) -> None:
    tomorrow = (today or timezone.localdate()) + timedelta(days=1)
    if start_date < tomorrow or end_date < tomorrow:
        raise InvalidBookingDatesError("Booking dates must be in the future")
    if end_date <= start_date:
        raise InvalidBookingDatesError("End date must be after start date")


def ensure_campsite_available(
    campsite: Campsite,
    start_date: date,
    end_date: date,
    *,
    guests: int = 1,
    exclude_booking_id=None,
) -> None:
    """Ensure the campsite can take ``guests`` for the given period."""

    if not campsite.availability:
        raise CampsiteUnavailableError("Campsite is not available for booking")
    if guests > campsite.capacity:
        raise CampsiteUnavailableError(
            f"Campsite capacity is {campsite.capacity} guests, requested {guests}"
        )

    booked_qs = (
        CampsiteBookedDate.objects.filter(campsite=campsite)
        .filter(Q(start_date__lt=end_date) & Q(end_date__gt=start_date))
        .exclude(booking__status=Booking.Status.CANCELLED)
    )
    if exclude_booking_id is not None:
        booked_qs = booked_qs.exclude(booking_id=exclude_booking_id)

    booked_qs = _lock_queryset_if_possible(booked_qs)

    if booked_qs.exists():
        raise BookingConflictError("Campsite is already booked for the selected dates")


def ensure_safety_alerts_acknowledged(user, campground: Campground, campsite: Campsite | None = None) -> None:
    pending = list(
        SafetyAlert.objects.current()
        .requiring_acknowledgement()
        .for_stay(campground, campsite)
        .unacknowledged_by(user)
        .order_by("start_date", "pk")
    )
    if pending:
        raise SafetyAlertsNotAcknowledgedError(pending)


def _resolve_campsite(campground: Campground, campsite_id) -> Campsite | None:
    if campsite_id in (None, ""):
        return None
    campsite = Campsite.objects.filter(pk=campsite_id).select_related("campground").first()
    if campsite is None:
        raise BookingServiceError("Campsite not found", status_code=404)
    if campsite.campground_id != campground.pk:
        raise BookingServiceError("Campsite does not belong to this campground")
    return campsite


def build_booking_quote(
    *,
    user,
    campground: Campground,
    start_date: date,
    end_date: date,
    campsite_id=None,
    guests: int = 1,
    today: date | None = None,
) -> BookingQuote:
    """Validate a requested stay and price it. Nothing is persisted."""

    validate_booking_dates(start_date, end_date, today=today)
    campsite = _resolve_campsite(campground, campsite_id)
    if campsite is not None:
        ensure_campsite_available(campsite, start_date, end_date, guests=guests)
    ensure_safety_alerts_acknowledged(user, campground, campsite)

    price_per_night = campsite.price if campsite is not None else campground.starting_price
    total_days, total_price = calculate_days_and_price(start_date, end_date, price_per_night)
    return BookingQuote(
        campground=campground,
        campsite=campsite,
        start_date=start_date,
        end_date=end_date,
        guests=guests,
        total_days=total_days,
        price_per_night=Decimal(price_per_night),
        total_price=total_price,
    )


def create_checkout_session(quote: BookingQuote, *, user) -> CheckoutSession:
    """Open a hosted checkout session for a validated quote."""

    campground = quote.campground
    client_url = settings.CLIENT_URL.rstrip("/")
    description = f"{quote.total_days} nights at {campground.location}"
    if quote.campsite is not None:
        description = f"{quote.campsite.name}: {description}"

    session = stripe_gateway.create_checkout_session(
        product_name=f"Booking for {campground.title}",
        description=f"{description} ({quote.start_date:%Y-%m-%d} to {quote.end_date:%Y-%m-%d})",
        amount=quote.total_price,
        success_url=(
            f"{client_url}/bookings/payment-success"
            f"?session_id={{CHECKOUT_SESSION_ID}}&campground_id={campground.pk}"
        ),
        cancel_url=f"{client_url}/campgrounds/{campground.pk}",
        metadata=quote.metadata_for(user),
        customer_email=getattr(user, "email", None),
    )
    logger.info(
        "checkout_session_created",
        session_id=session.id,
        user_id=user.pk,
        campground_id=campground.pk,
        total_price=str(quote.total_price),
    )
    return session


def _booking_fields_from_metadata(metadata: dict[str, str]) -> dict[str, Any]:
    try:
        start_date = date.fromisoformat(metadata["start_date"])
        end_date = date.fromisoformat(metadata["end_date"])
        fields: dict[str, Any] = {
            "campground_id": int(metadata["campground_id"]),
            "campsite_id": int(metadata["campsite_id"]) if metadata.get("campsite_id") else None,
            "start_date": start_date,
            "end_date": end_date,
            "total_days": int(metadata.get("total_days") or (end_date - start_date).days),
            "total_price": Decimal(metadata["total_price"]),
            "guests": int(metadata.get("guests") or 1),
        }
    except (KeyError, ValueError, InvalidOperation) as exc:
        raise InvalidSessionMetadataError("Invalid payment session metadata") from exc
    return fields


def _drop_missing_references(fields: dict[str, Any], log) -> dict[str, Any]:
    """Check the listing rows named by a paid session still exist.

    A deleted campsite is dropped from the booking so the paid stay is still
    recorded; a deleted campground makes the session unusable.
    """
    if not Campground.objects.filter(pk=fields["campground_id"]).exists():
        log.error("campground_missing", metadata_campground_id=fields["campground_id"])
        raise InvalidSessionMetadataError("Campground for this payment no longer exists")

    campsite_id = fields["campsite_id"]
    if campsite_id is not None and not Campsite.objects.filter(
        pk=campsite_id, campground_id=fields["campground_id"]
    ).exists():
        log.warning("campsite_missing", metadata_campsite_id=campsite_id)
        fields = {**fields, "campsite_id": None}
    return fields


def confirm_checkout_session(
    session_id: str | None,
    *,
    user: "User | None" = None,
    campground_id=None,
    session: CheckoutSession | None = None,
) -> PaymentConfirmation:
    """Turn a paid checkout session into exactly one confirmed booking.

    Safe to call any number of times for the same session, concurrently or
    not: the booking is keyed by ``session_id`` (unique), and the follow-up
    propagation is re-run until it has been recorded as done.

    ``user`` is the requesting user for the client success redirect and is
    checked against the session metadata. Webhook deliveries pass ``None``
    and the booking user is taken from the metadata.
    """

    log = logger.bind(
        session_id=session_id,
        user_id=getattr(user, "pk", None),
        campground_id=campground_id,
    )
    log.info("payment_success_called")

    if not session_id:
        raise BookingServiceError("Session ID is required")

    if session is None:
        session = stripe_gateway.retrieve_checkout_session(session_id)

    if not session.is_paid:
        log.warning("payment_not_completed", payment_status=session.payment_status)
        raise PaymentNotCompletedError("Payment not completed")

    metadata = session.metadata
    if user is not None and metadata.get("user_id") != str(user.pk):
        log.warning("payment_user_mismatch", metadata_user_id=metadata.get("user_id"))
        raise PaymentUserMismatchError("User mismatch")
    if campground_id is not None and metadata.get("campground_id") != str(campground_id):
        log.warning("payment_campground_mismatch", metadata_campground_id=metadata.get("campground_id"))
        raise PaymentCampgroundMismatchError("Payment session does not belong to this campground")

    if user is None:
        user = get_user_model().objects.filter(pk=metadata.get("user_id") or None).first()
        if user is None:
            raise InvalidSessionMetadataError("Invalid payment session metadata")

    fields = _drop_missing_references(_booking_fields_from_metadata(metadata), log)
    with transaction.atomic():
        booking, created = Booking.objects.get_or_create(
            session_id=session_id,
            defaults={
                **fields,
                "user": user,
                "paid": True,
                "status": Booking.Status.CONFIRMED,
            },
        )

    if created:
        log.info("booking_created", booking_id=booking.pk, total_price=str(booking.total_price))
        message = "Booking confirmed successfully"
    else:
        age_ms = int(booking.age().total_seconds() * 1000)
        log.info("duplicate_booking_detected", booking_id=booking.pk, age_ms=age_ms, status=booking.status)
        message = (
            f"Payment already processed and booking {booking.get_status_display().lower()}. "
            f"Original booking was created {age_ms}ms ago."
        )

    if not booking.references_synced:
        try:
            sync_booking_references(booking)
        except Exception as exc:  # noqa: BLE001
            log.error(
                "booking_references_sync_failed",
                booking_id=booking.pk,
                error=str(exc),
                exc_info=True,
            )

    return PaymentConfirmation(booking=booking, created=created, message=message)


def sync_booking_references(booking: Booking) -> bool:
    """Propagate a paid booking to the campsite calendar and schedule the confirmation email.

    Every step is idempotent; ``references_synced_at`` is stamped in the same
    transaction, so a failure leaves it unset and the whole step can be re-run.
    Returns False when there was nothing left to do.
    """

    from .tasks import notify_booking_confirmed  # local import to avoid circular

    with transaction.atomic():
        locked = _lock_queryset_if_possible(Booking.objects.filter(pk=booking.pk)).get()
        if locked.references_synced_at is not None:
            booking.references_synced_at = locked.references_synced_at
            return False

        if locked.campsite_id and not locked.is_cancelled:
            overlapping = (
                CampsiteBookedDate.objects.filter(
                    campsite_id=locked.campsite_id,
                    start_date__lt=locked.end_date,
                    end_date__gt=locked.start_date,
                )
                .exclude(booking=locked)
                .exclude(booking__status=Booking.Status.CANCELLED)
            )
            if overlapping.exists():
                logger.warning(
                    "campsite_double_booked",
                    booking_id=locked.pk,
                    campsite_id=locked.campsite_id,
                )
            CampsiteBookedDate.objects.get_or_create(
                booking=locked,
                defaults={
                    "campsite_id": locked.campsite_id,
                    "start_date": locked.start_date,
                    "end_date": locked.end_date,
                },
            )

        if locked.confirmation_sent_at is None and not locked.is_cancelled:
            transaction.on_commit(partial(notify_booking_confirmed.delay, locked.pk), robust=True)

        locked.references_synced_at = timezone.now()
        locked.save(update_fields=["references_synced_at", "updated_at"])

    booking.references_synced_at = locked.references_synced_at
    logger.info("booking_references_synced", booking_id=booking.pk, campsite_id=booking.campsite_id)
    return True


def cancel_booking(booking: Booking, *, cancelled_by=None) -> Booking:
    """Cancel a booking and release the campsite dates it held."""

    with transaction.atomic():
        locked = _lock_queryset_if_possible(Booking.objects.filter(pk=booking.pk)).get()
        if locked.is_cancelled:
            raise BookingAlreadyCancelledError("Booking is already cancelled")
        locked.status = Booking.Status.CANCELLED
        locked.cancelled_at = timezone.now()
        locked.save(update_fields=["status", "cancelled_at", "updated_at"])
        released, _ = CampsiteBookedDate.objects.filter(booking=locked).delete()

    logger.info(
        "booking_cancelled",
        booking_id=locked.pk,
        cancelled_by=getattr(cancelled_by, "pk", None),
        released_dates=released,
    )
    return locked


def retrieve_session_summary(booking: Booking) -> dict[str, Any] | None:
    """Provider view of the booking's checkout session, ``None`` when unavailable."""

    if not booking.session_id:
        return None
    try:
        session = stripe_gateway.retrieve_checkout_session(booking.session_id)
    except stripe_gateway.StripeGatewayError as exc:
        logger.warning("booking_session_lookup_failed", booking_id=booking.pk, error=str(exc))
        return None
    return session.as_dict()
