"""User domain models for AdventureMate.

The platform differentiates three roles: guests who browse and book,
owners who list and manage campgrounds, and platform administrators.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Any

from django.contrib.auth.models import AbstractUser, UserManager as BaseUserManager  # type: ignore
from django.core.validators import RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


PHONE_VALIDATOR = RegexValidator(
    regex=r"^\+?\d{7,15}$",
    message=_("Invalid phone number. Use the international format without spaces."),
)


class UserManager(BaseUserManager):
    """Manager that normalises contact data and assigns platform roles."""

    def create_user(self, username: str, email: str | None = None, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("role", User.RoleChoices.GUEST)
        phone = extra_fields.get("phone")
        if phone:
            extra_fields["phone"] = self.normalize_phone(phone)
        return super().create_user(username, email, password, **extra_fields)

    def create_superuser(self, username: str, email: str | None = None, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("role", User.RoleChoices.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)

    @staticmethod
    def normalize_phone(phone: str) -> str:
        """Strip spaces and dashes so phones are stored uniformly."""
        return phone.replace(" ", "").replace("-", "")


class User(AbstractUser):
    """Platform user with a role and login lockout bookkeeping."""

    class RoleChoices(models.TextChoices):
        GUEST = "guest", _("Guest")
        OWNER = "owner", _("Owner")
        ADMIN = "admin", _("Admin")

    email = models.EmailField(_("email address"), unique=True)
    phone = models.CharField(
        _("phone"),
        max_length=20,
        null=True,
        blank=True,
        validators=[PHONE_VALIDATOR],
    )
    role = models.CharField(
        _("role"),
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.GUEST,
    )
    is_email_verified = models.BooleanField(_("email verified"), default=False)
    email_verified_at = models.DateTimeField(_("email verified at"), null=True, blank=True)
    failed_login_attempts = models.PositiveIntegerField(default=0)
    locked_until = models.DateTimeField(_("locked until"), null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = _("user")
        verbose_name_plural = _("users")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.username} ({self.get_role_display()})"

    def is_owner(self) -> bool:
        return self.role == self.RoleChoices.OWNER

    def is_platform_admin(self) -> bool:
        return self.role == self.RoleChoices.ADMIN or self.is_staff or self.is_superuser

    def promote_to_owner(self) -> None:
        if self.is_owner() or self.is_platform_admin():
            return
        self.role = self.RoleChoices.OWNER
        self.save(update_fields=["role", "updated_at"])

    @property
    def is_locked(self) -> bool:
        return bool(self.locked_until and self.locked_until > timezone.now())

    def lock(self, minutes: int = 15) -> None:
        self.locked_until = timezone.now() + timedelta(minutes=minutes)
        self.failed_login_attempts = 0
        self.save(update_fields=["locked_until", "failed_login_attempts"])

    def unlock(self) -> None:
        self.locked_until = None
        self.failed_login_attempts = 0
        self.save(update_fields=["locked_until", "failed_login_attempts"])

    def register_failed_attempt(self, threshold: int = 5) -> None:
        self.failed_login_attempts += 1
        if self.failed_login_attempts >= threshold:
            self.lock()
            return
        self.save(update_fields=["failed_login_attempts"])

    def mark_email_verified(self) -> None:
        self.is_email_verified = True
        self.email_verified_at = timezone.now()
        self.save(update_fields=["is_email_verified", "email_verified_at", "updated_at"])


class OneTimeToken(models.Model):
    """Emailed single-use link token bound to a user and the address it was sent to."""

    email = models.EmailField()
    token = models.CharField(max_length=64, unique=True)
    expires_at = models.DateTimeField()
    is_used = models.BooleanField(default=False)
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__} for {self.user_id}"

    @property
    def is_expired(self) -> bool:
        return timezone.now() >= self.expires_at

    @property
    def is_valid(self) -> bool:
        return not self.is_used and not self.is_expired

    def mark_used(self) -> None:
        self.is_used = True
        self.used_at = timezone.now()
        self.save(update_fields=["is_used", "used_at"])

    @classmethod
    def issue_for(cls, user: "User", ttl: timedelta):
        """Invalidate the user's outstanding tokens and create a fresh one."""
        now = timezone.now()
        cls.objects.filter(user=user, is_used=False).update(is_used=True, used_at=now)
        return cls.objects.create(
            user=user,
            email=user.email,
            token=secrets.token_urlsafe(32),
            expires_at=now + ttl,
        )

    @classmethod
    def find_valid(cls, token: str):
        """Return the unused, unexpired token matching ``token`` or None."""
        if not token:
            return None
        return (
            cls.objects.select_related("user")
            .filter(token=token, is_used=False, expires_at__gt=timezone.now())
            .first()
        )


class PasswordResetToken(OneTimeToken):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="password_reset_tokens")

    class Meta(OneTimeToken.Meta):
        verbose_name = _("password reset token")
        verbose_name_plural = _("password reset tokens")
        indexes = [models.Index(fields=["user", "is_used"], name="pwreset_user_used_idx")]


class EmailVerificationToken(OneTimeToken):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="email_verification_tokens")

    class Meta(OneTimeToken.Meta):
        verbose_name = _("email verification token")
        verbose_name_plural = _("email verification tokens")
        indexes = [models.Index(fields=["user", "is_used"], name="emailverify_user_used_idx")]
