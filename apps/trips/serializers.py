"""Serializers for trips, trip days and invites."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.campgrounds.models import Campground, Campsite
from apps.users.serializers import UserShortSerializer

from .models import Trip, TripDay, TripInvite


class ActivitySerializer(serializers.Serializer):
    time = serializers.CharField(max_length=20, required=False, allow_blank=True)
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(max_length=200, required=False, allow_blank=True)
    campground = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    campsite = serializers.IntegerField(required=False, allow_null=True, min_value=1)

    def validate(self, attrs):  # type: ignore
        campground_id = attrs.get("campground")
        campsite_id = attrs.get("campsite")
        if campground_id and not Campground.objects.filter(pk=campground_id).exists():
            raise serializers.ValidationError({"campground": "Campground not found."})
        if campsite_id:
            campsite = Campsite.objects.filter(pk=campsite_id).first()
            if campsite is None:
                raise serializers.ValidationError({"campsite": "Campsite not found."})
            if campground_id and campsite.campground_id != campground_id:
                raise serializers.ValidationError({"campsite": "Campsite does not belong to this campground."})
        return attrs


class TripDaySerializer(serializers.ModelSerializer):
    activities = ActivitySerializer(many=True, required=False)

    class Meta:
        model = TripDay
        fields = ["id", "trip", "date", "activities", "notes", "created_at", "updated_at"]
        read_only_fields = ["id", "trip", "created_at", "updated_at"]

    # Activities are stored as plain JSON on the day.
    def create(self, validated_data):  # type: ignore
        return TripDay.objects.create(**validated_data)

    def update(self, instance, validated_data):  # type: ignore
        for field, value in validated_data.items():
            setattr(instance, field, value)
        instance.save()
        return instance


class TripSerializer(serializers.ModelSerializer):
    user = UserShortSerializer(read_only=True)
    collaborators = UserShortSerializer(many=True, read_only=True)
    days = TripDaySerializer(many=True, read_only=True)

    class Meta:
        model = Trip
        fields = [
            "id",
            "user",
            "title",
            "description",
            "start_date",
            "end_date",
            "is_public",
            "collaborators",
            "days",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "user", "collaborators", "days", "created_at", "updated_at"]

    def validate(self, attrs):  # type: ignore
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date cannot be before start date."})
        return attrs


class TripInviteRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    message = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class TripInviteSerializer(serializers.ModelSerializer):
    inviter = UserShortSerializer(read_only=True)
    trip_title = serializers.CharField(source="trip.title", read_only=True)

    class Meta:
        model = TripInvite
        fields = ["id", "trip", "trip_title", "email", "inviter", "status", "created_at"]
        read_only_fields = fields
