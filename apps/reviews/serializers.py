"""Serializers for reviews.

The author and campground are taken from the request and URL in the view.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.users.serializers import UserShortSerializer

from .models import Review


class ReviewSerializer(serializers.ModelSerializer):
    author = UserShortSerializer(read_only=True)
    rating = serializers.IntegerField(min_value=1, max_value=5)

    class Meta:
        model = Review
        fields = ['id', 'campground', 'author', 'rating', 'body', 'created_at', 'updated_at']
        read_only_fields = ['id', 'campground', 'author', 'created_at', 'updated_at']

    def validate_body(self, value: str) -> str:  # type: ignore
        if not value.strip():
            raise serializers.ValidationError('Review body cannot be empty.')
        return value.strip()
