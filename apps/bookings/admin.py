"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "campground",
        "campsite",
        "user",
        "status",
        "paid",
        "start_date",
        "end_date",
        "total_price",
        "references_synced_at",
        "created_at",
    )
    list_filter = ("status", "paid", "start_date")
    search_fields = ("session_id", "campground__title", "user__email", "user__username")
    readonly_fields = (
        "session_id",
        "created_at",
        "updated_at",
        "references_synced_at",
        "confirmation_sent_at",
        "cancelled_at",
    )
