"""Models for collaborative trip planning.

A trip spans a date range and gets one ``TripDay`` per date; each day holds
an ordered list of activities that may point at campgrounds or campsites.
The trip owner shares it with registered users directly or with anyone by
an emailed invite token.
"""

from __future__ import annotations

import secrets
from datetime import timedelta

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Trip(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="trips")
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    start_date = models.DateField()
    end_date = models.DateField()
    collaborators = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name="shared_trips")
    is_public = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Trip")
        verbose_name_plural = _("Trips")
        ordering = ["start_date", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="trip_valid_dates",
            ),
        ]

    def __str__(self) -> str:
        return self.title

    def is_owner(self, user) -> bool:
        return self.user_id == user.pk

    def is_member(self, user) -> bool:
        return self.is_owner(user) or self.collaborators.filter(pk=user.pk).exists()

    def create_days(self) -> list["TripDay"]:
        """One day per date from start to end, both inclusive."""
        total = (self.end_date - self.start_date).days + 1
        return TripDay.objects.bulk_create(
            TripDay(trip=self, date=self.start_date + timedelta(days=offset)) for offset in range(total)
        )


class TripDay(models.Model):
    trip = models.ForeignKey(Trip, on_delete=models.CASCADE, related_name="days")
    date = models.DateField()
    activities = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Trip day")
        verbose_name_plural = _("Trip days")
        ordering = ["date", "id"]

    def __str__(self) -> str:
        return f"{self.trip_id} on {self.date:%Y-%m-%d}"


def _invite_token() -> str:
    return secrets.token_hex(32)


class TripInvite(models.Model):
    """Invitation for an email address that has no account yet."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        ACCEPTED = "accepted", _("Accepted")

    trip = models.ForeignKey(Trip, on_delete=models.CASCADE, related_name="invites")
    email = models.EmailField()
    inviter = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="sent_trip_invites")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    token = models.CharField(max_length=64, unique=True, default=_invite_token)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Trip invite")
        verbose_name_plural = _("Trip invites")
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["trip", "email", "status"], name="tripinvite_lookup_idx")]

    def __str__(self) -> str:
        return f"Invite {self.email} to trip {self.trip_id}"
