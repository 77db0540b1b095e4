"""Serializers for owner onboarding."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.users.serializers import UserShortSerializer

from .models import OwnerApplication


class OwnerApplicationSerializer(serializers.ModelSerializer):
    user = UserShortSerializer(read_only=True)
    reviewed_by = UserShortSerializer(read_only=True)

    class Meta:
        model = OwnerApplication
        fields = [
            "id",
            "user",
            "business_name",
            "business_type",
            "business_phone",
            "business_email",
            "business_address",
            "status",
            "review_notes",
            "reviewed_by",
            "reviewed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "user",
            "status",
            "review_notes",
            "reviewed_by",
            "reviewed_at",
            "created_at",
            "updated_at",
        ]


class ReviewDecisionSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")
