"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Public profile of a platform user."""

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "phone",
            "role",
            "is_email_verified",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "username", "role", "is_email_verified", "created_at", "updated_at"]

    def update(self, instance, validated_data):  # type: ignore
        new_email = validated_data.get("email")
        if new_email and new_email.lower() != instance.email.lower():
            # A changed address has to be verified again.
            instance.is_email_verified = False
            instance.email_verified_at = None
        return super().update(instance, validated_data)


class UserShortSerializer(serializers.ModelSerializer):
    """Author/guest summary embedded in bookings and reviews."""

    class Meta:
        model = User
        fields = ["id", "username", "email"]
