"""Admin registrations for the users domain."""

from __future__ import annotations

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import EmailVerificationToken, PasswordResetToken, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    fieldsets = BaseUserAdmin.fieldsets + (
        (_("Platform"), {"fields": ("role", "phone")}),
        (_("Security"), {"fields": ("is_email_verified", "email_verified_at", "failed_login_attempts", "locked_until")}),
        (_("Timestamps"), {"fields": ("created_at", "updated_at")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        (_("Platform"), {"fields": ("email", "role", "phone")}),
    )
    list_display = ("username", "email", "role", "is_active", "is_staff", "is_locked")
    list_filter = ("role", "is_active", "is_staff", "is_email_verified")
    search_fields = ("username", "email", "phone")
    ordering = ("username",)
    readonly_fields = ("created_at", "updated_at", "date_joined")

    @admin.display(boolean=True, description=_("Locked"))
    def is_locked(self, obj):
        return obj.is_locked


@admin.register(PasswordResetToken, EmailVerificationToken)
class OneTimeTokenAdmin(admin.ModelAdmin):
    list_display = ("user", "email", "expires_at", "is_used", "created_at")
    list_filter = ("is_used", "expires_at")
    search_fields = ("user__username", "user__email", "email")
    readonly_fields = ("token", "created_at", "used_at")
