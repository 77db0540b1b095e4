"""Campground listing models.

A campground is owned by an owner account and contains campsites, which are
the bookable units. Each paid booking that reserves a campsite adds one
``CampsiteBookedDate`` row; overlap checks run against those rows.
Safety alerts can be attached to a campground or to a single campsite and
may require guests to acknowledge them before booking.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.db.models import Min, Q  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Campground(models.Model):
    """A listed campground."""

    title = models.CharField(max_length=255)
    description = models.TextField()
    location = models.CharField(max_length=255)
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    images = models.JSONField(default=list, blank=True, help_text=_("List of {url, filename} objects."))
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="campgrounds",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Campground")
        verbose_name_plural = _("Campgrounds")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title

    @property
    def starting_price(self) -> Decimal:
        """Lowest nightly price over available campsites, 0 when there are none."""
        lowest = self.campsites.filter(availability=True).aggregate(lowest=Min("price"))["lowest"]
        return lowest if lowest is not None else Decimal("0.00")

    def is_managed_by(self, user) -> bool:
        return bool(user and user.is_authenticated and self.owner_id == user.id)


class Campsite(models.Model):
    """A bookable site inside a campground."""

    campground = models.ForeignKey(Campground, on_delete=models.CASCADE, related_name="campsites")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    features = models.JSONField(default=list, blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text=_("Price per night."),
    )
    capacity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    images = models.JSONField(default=list, blank=True)
    availability = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Campsite")
        verbose_name_plural = _("Campsites")
        ordering = ["price", "id"]

    def __str__(self) -> str:
        return f"{self.name} @ {self.campground_id}"

    def is_booked_between(self, start_date, end_date) -> bool:
        """Return True if a non-cancelled booking overlaps ``[start_date, end_date)``."""
        return (
            self.booked_dates.filter(start_date__lt=end_date, end_date__gt=start_date)
            .exclude(booking__status="cancelled")
            .exists()
        )


class CampsiteBookedDate(models.Model):
    """Date range reserved on a campsite by a paid booking."""

    campsite = models.ForeignKey(Campsite, on_delete=models.CASCADE, related_name="booked_dates")
    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="booked_date",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Campsite booked date")
        verbose_name_plural = _("Campsite booked dates")
        ordering = ["start_date"]
        indexes = [models.Index(fields=["campsite", "start_date", "end_date"], name="booked_date_range_idx")]

    def __str__(self) -> str:
        return f"{self.campsite_id}: {self.start_date} - {self.end_date}"


class SafetyAlertQuerySet(models.QuerySet):
    def current(self, at=None):
        at = at or timezone.now()
        return self.filter(
            status=SafetyAlert.Status.ACTIVE,
            start_date__lte=at,
            end_date__gte=at,
        )

    def requiring_acknowledgement(self):
        return self.filter(requires_acknowledgement=True)

    def for_stay(self, campground, campsite=None):
        condition = Q(campground=campground)
        if campsite is not None:
            condition |= Q(campsite=campsite)
        return self.filter(condition)

    def unacknowledged_by(self, user):
        return self.exclude(acknowledgements__user=user)


class SafetyAlert(models.Model):
    """Safety notice on a campground or on one of its campsites."""

    class Severity(models.TextChoices):
        LOW = "low", _("Low")
        MEDIUM = "medium", _("Medium")
        HIGH = "high", _("High")
        CRITICAL = "critical", _("Critical")

    class AlertType(models.TextChoices):
        WEATHER = "weather", _("Weather")
        WILDLIFE = "wildlife", _("Wildlife")
        FIRE = "fire", _("Fire")
        FLOOD = "flood", _("Flood")
        MEDICAL = "medical", _("Medical")
        SECURITY = "security", _("Security")
        MAINTENANCE = "maintenance", _("Maintenance")
        OTHER = "other", _("Other")

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        RESOLVED = "resolved", _("Resolved")
        EXPIRED = "expired", _("Expired")

    campground = models.ForeignKey(
        Campground,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="safety_alerts",
    )
    campsite = models.ForeignKey(
        Campsite,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="safety_alerts",
    )
    title = models.CharField(max_length=100)
    description = models.TextField(max_length=1000)
    severity = models.CharField(max_length=20, choices=Severity.choices, default=Severity.MEDIUM)
    type = models.CharField(max_length=20, choices=AlertType.choices, default=AlertType.OTHER)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    start_date = models.DateTimeField(default=timezone.now)
    end_date = models.DateTimeField()
    is_public = models.BooleanField(default=True)
    requires_acknowledgement = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_safety_alerts",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SafetyAlertQuerySet.as_manager()

    class Meta:
        verbose_name = _("Safety alert")
        verbose_name_plural = _("Safety alerts")
        ordering = ["-start_date"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(campground__isnull=False, campsite__isnull=True)
                    | Q(campground__isnull=True, campsite__isnull=False)
                ),
                name="safety_alert_single_target",
            ),
        ]

    def __str__(self) -> str:
        return f"[{self.severity}] {self.title}"

    def clean(self) -> None:
        if bool(self.campground_id) == bool(self.campsite_id):
            raise ValidationError(_("Attach the alert to either a campground or a campsite."))
        if self.end_date and self.start_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": _("End date must be after start date.")})

    @property
    def is_current(self) -> bool:
        now = timezone.now()
        return self.status == self.Status.ACTIVE and self.start_date <= now <= self.end_date

    def target_campground_id(self):
        if self.campground_id:
            return self.campground_id
        return self.campsite.campground_id


class SafetyAlertAcknowledgement(models.Model):
    alert = models.ForeignKey(SafetyAlert, on_delete=models.CASCADE, related_name="acknowledgements")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="safety_alert_acknowledgements",
    )
    acknowledged_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["alert", "user"], name="unique_alert_acknowledgement"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} acknowledged {self.alert_id}"
