"""Notification services for sending emails."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.template.loader import render_to_string  # type: ignore
from django.utils.html import strip_tags  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Booking
    from apps.owners.models import OwnerApplication

logger = logging.getLogger(__name__)


def send_email_notification(
    recipient_email: str,
    subject: str,
    template_name: str | None,
    context: dict,
    *,
    html_message: str | None = None,
) -> bool:
    """
    Send a single email.

    Args:
        recipient_email: recipient address
        subject: subject line
        template_name: optional Django template rendered with ``context``
        context: template context; ``context["message"]`` is the plain body
            when no template is given
        html_message: optional pre-rendered HTML body

    Returns:
        bool: True if the message was handed to the mail backend
    """
    if not recipient_email:
        logger.warning("Skipping email %r: recipient has no address", subject)
        return False

    try:
        if html_message:
            text_message = strip_tags(html_message)
        elif template_name:
            html_message = render_to_string(template_name, context)
            text_message = strip_tags(html_message)
        else:
            text_message = context.get("message", "")
            html_message = None

        send_mail(
            subject=subject,
            message=text_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )
    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False

    logger.info(f"Email sent successfully to {recipient_email}: {subject}")
    return True


def send_booking_confirmation_email(booking: "Booking") -> bool:
    """Booking confirmation sent to the guest after payment."""
    campground = booking.campground
    lines = [
        f"Hi {booking.user.username},",
        "",
        f"Your booking #{booking.pk} at {campground.title} is confirmed.",
        f"Dates: {booking.start_date:%Y-%m-%d} to {booking.end_date:%Y-%m-%d} ({booking.total_days} nights)",
    ]
    if booking.campsite_id:
        lines.append(f"Campsite: {booking.campsite.name}")
    lines += [
        f"Guests: {booking.guests}",
        f"Total paid: {booking.total_price}",
        "",
        f"View your booking: {settings.CLIENT_URL}/bookings/{booking.pk}",
    ]
    return send_email_notification(
        recipient_email=booking.user.email,
        subject=f"Booking #{booking.pk} confirmed: {campground.title}",
        template_name=None,
        context={"message": "\n".join(lines)},
    )


def send_owner_application_decision_email(application: "OwnerApplication") -> bool:
    """Tell the applicant whether their owner application was approved."""
    approved = application.status == application.Status.APPROVED
    message = (
        "Your owner application has been approved. You can now list campgrounds."
        if approved
        else "Your owner application has been rejected."
    )
    if application.review_notes:
        message += f"\n\nNotes from the reviewer: {application.review_notes}"
    return send_email_notification(
        recipient_email=application.user.email,
        subject=f"Owner application {application.get_status_display().lower()}",
        template_name=None,
        context={"message": message},
    )


def send_booking_cancellation_email(booking: "Booking") -> bool:
    return send_email_notification(
        recipient_email=booking.user.email,
        subject=f"Booking #{booking.pk} cancelled",
        template_name=None,
        context={
            "message": (
                f"Your booking #{booking.pk} at {booking.campground.title} "
                f"({booking.start_date:%Y-%m-%d} to {booking.end_date:%Y-%m-%d}) has been cancelled."
            )
        },
    )


def send_password_reset_email(reset_token) -> bool:
    """Emails the reset link; the token itself is never logged."""
    ttl = settings.PASSWORD_RESET_TOKEN_TTL_MINUTES
    return send_email_notification(
        recipient_email=reset_token.email,
        subject="Reset your AdventureMate password",
        template_name=None,
        context={
            "message": (
                f"Hi {reset_token.user.username},\n\n"
                f"Use this link to choose a new password: {settings.CLIENT_URL}/reset-password?token={reset_token.token}\n\n"
                f"The link expires in {ttl} minutes. If you did not ask for a reset, ignore this email."
            )
        },
    )


def send_email_verification_email(verification_token) -> bool:
    return send_email_notification(
        recipient_email=verification_token.email,
        subject="Verify your AdventureMate email address",
        template_name=None,
        context={
            "message": (
                f"Hi {verification_token.user.username},\n\n"
                f"Confirm your email address: {settings.CLIENT_URL}/verify-email?token={verification_token.token}\n\n"
                f"The link expires in {settings.EMAIL_VERIFICATION_TOKEN_TTL_HOURS} hours."
            )
        },
    )


def send_trip_invite_email(*, recipient_email: str, inviter, trip, invite_url: str, message: str = "") -> bool:
    """Invite someone to plan a trip, registered or not."""
    lines = [
        f"{inviter.username} invited you to plan the trip \"{trip.title}\" "
        f"({trip.start_date:%Y-%m-%d} to {trip.end_date:%Y-%m-%d}).",
    ]
    if trip.description:
        lines += ["", trip.description]
    if message:
        lines += ["", f"Message from {inviter.username}: {message}"]
    lines += ["", f"Join the trip: {invite_url}"]
    return send_email_notification(
        recipient_email=recipient_email,
        subject=f"You're invited to join {trip.title}",
        template_name=None,
        context={"message": "\n".join(lines)},
    )
