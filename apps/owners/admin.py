"""Admin registration for owner applications."""

from __future__ import annotations

from django.contrib import admin

from .models import OwnerApplication


@admin.register(OwnerApplication)
class OwnerApplicationAdmin(admin.ModelAdmin):
    list_display = ("business_name", "user", "business_type", "status", "reviewed_by", "created_at")
    list_filter = ("status", "business_type")
    search_fields = ("business_name", "business_email", "user__email", "user__username")
    readonly_fields = ("created_at", "updated_at", "reviewed_at")
