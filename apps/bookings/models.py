"""Booking domain models for AdventureMate."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class BookingQuerySet(models.QuerySet):
    def active(self):
        return self.exclude(status=Booking.Status.CANCELLED)

    def pending_reference_sync(self, older_than=None):
        qs = self.filter(paid=True, references_synced_at__isnull=True).exclude(
            status=Booking.Status.CANCELLED
        )
        if older_than is not None:
            qs = qs.filter(created_at__lte=older_than)
        return qs


class Booking(models.Model):
    """A paid reservation of a campground (and optionally a campsite).

    Bookings are only created from a completed checkout session; the session
    identifier is unique so a session can never produce two bookings.
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    campground = models.ForeignKey(
        "campgrounds.Campground",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    campsite = models.ForeignKey(
        "campgrounds.Campsite",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    total_days = models.PositiveIntegerField(help_text=_("Number of nights."))
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    guests = models.PositiveIntegerField(default=1)
    session_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text=_("Checkout session identifier; one booking per session."),
    )
    paid = models.BooleanField(default=False)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    references_synced_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Set once booked dates and notifications have been propagated."),
    )
    confirmation_sent_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["user", "status"], name="booking_user_status_idx"),
            models.Index(fields=["campground", "start_date"], name="booking_campground_start_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.pk} for campground {self.campground_id}"

    def clean(self) -> None:
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError(_("End date must be after start date."))
        if self.campsite_id and self.campsite.campground_id != self.campground_id:
            raise ValidationError(_("Campsite does not belong to the booked campground."))

    @property
    def is_cancelled(self) -> bool:
        return self.status == self.Status.CANCELLED

    @property
    def references_synced(self) -> bool:
        return self.references_synced_at is not None

    def age(self):
        return timezone.now() - self.created_at
