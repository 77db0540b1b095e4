"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore

from .models import Booking
from .services import sync_booking_references

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled by Celery Beat)
# ============================================================================

@shared_task(name="bookings.sync_pending_booking_references")
def sync_pending_booking_references() -> dict[str, int]:
    """
    Finish propagation for paid bookings that were left half-done.

    Picks up paid, non-cancelled bookings older than the grace period whose
    booked dates were never recorded, or whose confirmation email was never
    sent, and re-runs the idempotent propagation for each of them.

    Returns:
        dict: {"synced": bookings propagated, "notified": emails re-queued,
        "failed": bookings that failed again}
    """
    grace = timedelta(minutes=getattr(settings, "BOOKING_REFERENCE_SYNC_GRACE_MINUTES", 5))
    cutoff = timezone.now() - grace
    synced = notified = failed = 0

    pending = (
        Booking.objects.filter(paid=True, created_at__lte=cutoff)
        .exclude(status=Booking.Status.CANCELLED)
        .filter(Q(references_synced_at__isnull=True) | Q(confirmation_sent_at__isnull=True))
        .order_by("created_at")
    )

    for booking in pending:
        if booking.references_synced_at is None:
            try:
                if sync_booking_references(booking):
                    synced += 1
            except Exception as e:
                failed += 1
                logger.error(f"Error syncing references for booking {booking.id}: {e}", exc_info=True)
            continue

        notify_booking_confirmed.delay(booking.id)
        notified += 1

    if synced or notified or failed:
        logger.info(f"Booking reference sync: synced={synced} notified={notified} failed={failed}")

    return {"synced": synced, "notified": notified, "failed": failed}


# ============================================================================
# NOTIFICATION TASKS
# ============================================================================

@shared_task(name="bookings.notify_booking_confirmed")
def notify_booking_confirmed(booking_id: int) -> bool:
    """Send the booking confirmation email to the guest, at most once."""
    from apps.notifications.services import send_booking_confirmation_email

    claimed_at = timezone.now()
    claimed = Booking.objects.filter(
        pk=booking_id,
        confirmation_sent_at__isnull=True,
    ).exclude(status=Booking.Status.CANCELLED).update(confirmation_sent_at=claimed_at)
    if not claimed:
        logger.info(f"Confirmation for booking {booking_id} already sent or not applicable")
        return False

    booking = Booking.objects.select_related("user", "campground", "campsite").get(pk=booking_id)
    if not send_booking_confirmation_email(booking):
        # Release the claim so the periodic sync retries the email.
        Booking.objects.filter(pk=booking_id, confirmation_sent_at=claimed_at).update(
            confirmation_sent_at=None
        )
        logger.warning(f"Confirmation email for booking {booking_id} failed; claim released")
        return False

    logger.info(f"[NOTIFICATION] Booking confirmed notification sent: {booking_id} to {booking.user.email}")
    return True


@shared_task(name="bookings.notify_booking_cancelled")
def notify_booking_cancelled(booking_id: int) -> bool:
    """Tell the guest their booking was cancelled."""
    try:
        booking = Booking.objects.select_related("user", "campground").get(id=booking_id)
    except Booking.DoesNotExist:
        logger.error(f"Booking {booking_id} not found for cancellation notification")
        return False

    from apps.notifications.services import send_booking_cancellation_email

    return send_booking_cancellation_email(booking)
