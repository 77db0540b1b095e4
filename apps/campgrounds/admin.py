"""Admin registrations for campgrounds."""

from __future__ import annotations

from django.contrib import admin

from .models import Campground, Campsite, CampsiteBookedDate, SafetyAlert, SafetyAlertAcknowledgement


class CampsiteInline(admin.TabularInline):
    model = Campsite
    extra = 0
    fields = ("name", "price", "capacity", "availability")


@admin.register(Campground)
class CampgroundAdmin(admin.ModelAdmin):
    list_display = ("title", "location", "owner", "created_at")
    search_fields = ("title", "location", "owner__username")
    inlines = [CampsiteInline]
    readonly_fields = ("created_at", "updated_at")


@admin.register(Campsite)
class CampsiteAdmin(admin.ModelAdmin):
    list_display = ("name", "campground", "price", "capacity", "availability")
    list_filter = ("availability",)
    search_fields = ("name", "campground__title")


@admin.register(CampsiteBookedDate)
class CampsiteBookedDateAdmin(admin.ModelAdmin):
    list_display = ("campsite", "booking", "start_date", "end_date")
    list_filter = ("start_date",)


@admin.register(SafetyAlert)
class SafetyAlertAdmin(admin.ModelAdmin):
    list_display = ("title", "severity", "type", "status", "start_date", "end_date", "requires_acknowledgement")
    list_filter = ("severity", "type", "status", "requires_acknowledgement")
    search_fields = ("title", "description")


@admin.register(SafetyAlertAcknowledgement)
class SafetyAlertAcknowledgementAdmin(admin.ModelAdmin):
    list_display = ("alert", "user", "acknowledged_at")
