"""Admin registration for reviews."""

from __future__ import annotations

from django.contrib import admin

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("campground", "author", "rating", "created_at")
    list_filter = ("rating",)
    search_fields = ("campground__title", "author__username", "body")
