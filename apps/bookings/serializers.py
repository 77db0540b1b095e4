"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.campgrounds.serializers import CampgroundShortSerializer, CampsiteShortSerializer
from apps.users.serializers import UserShortSerializer

from .models import Booking


class BookingRequestSerializer(serializers.Serializer):
    """Stay requested by a guest, shared by quote and checkout."""

    start_date = serializers.DateField()
    end_date = serializers.DateField()
    campsite = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    guests = serializers.IntegerField(min_value=1, default=1)


class BookingSerializer(serializers.ModelSerializer):
    user = UserShortSerializer(read_only=True)
    campground = CampgroundShortSerializer(read_only=True)
    campsite = CampsiteShortSerializer(read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "user",
            "campground",
            "campsite",
            "start_date",
            "end_date",
            "total_days",
            "total_price",
            "guests",
            "session_id",
            "paid",
            "status",
            "references_synced_at",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
