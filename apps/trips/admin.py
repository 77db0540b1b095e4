"""Admin registrations for trips."""

from __future__ import annotations

from django.contrib import admin

from .models import Trip, TripDay, TripInvite


class TripDayInline(admin.TabularInline):
    model = TripDay
    extra = 0


@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    list_display = ("title", "user", "start_date", "end_date", "is_public")
    list_filter = ("is_public",)
    search_fields = ("title", "user__username", "user__email")
    filter_horizontal = ("collaborators",)
    inlines = [TripDayInline]


@admin.register(TripInvite)
class TripInviteAdmin(admin.ModelAdmin):
    list_display = ("email", "trip", "inviter", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("email", "trip__title")
    readonly_fields = ("token", "created_at")
