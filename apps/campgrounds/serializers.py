"""Serializers for campgrounds, campsites and safety alerts."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.users.serializers import UserShortSerializer

from .models import Campground, Campsite, SafetyAlert


class ImageSerializer(serializers.Serializer):
    url = serializers.URLField()
    filename = serializers.CharField(required=False, allow_blank=True)


class CampsiteSerializer(serializers.ModelSerializer):
    images = ImageSerializer(many=True, required=False)
    features = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        model = Campsite
        fields = [
            "id",
            "campground",
            "name",
            "description",
            "features",
            "price",
            "capacity",
            "images",
            "availability",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "campground", "created_at", "updated_at"]


class CampgroundSerializer(serializers.ModelSerializer):
    """Listing representation; ``campsites`` is only filled on detail."""

    owner = UserShortSerializer(read_only=True)
    images = ImageSerializer(many=True, required=False)
    starting_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = Campground
        fields = [
            "id",
            "title",
            "description",
            "location",
            "latitude",
            "longitude",
            "images",
            "owner",
            "starting_price",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "owner", "created_at", "updated_at"]


class CampgroundDetailSerializer(CampgroundSerializer):
    campsites = CampsiteSerializer(many=True, read_only=True)

    class Meta(CampgroundSerializer.Meta):
        fields = CampgroundSerializer.Meta.fields + ["campsites"]


class CampgroundShortSerializer(serializers.ModelSerializer):
    class Meta:
        model = Campground
        fields = ["id", "title", "location", "images"]


class CampsiteShortSerializer(serializers.ModelSerializer):
    class Meta:
        model = Campsite
        fields = ["id", "name", "price", "capacity"]


class SafetyAlertSerializer(serializers.ModelSerializer):
    acknowledged = serializers.SerializerMethodField()

    class Meta:
        model = SafetyAlert
        fields = [
            "id",
            "campground",
            "campsite",
            "title",
            "description",
            "severity",
            "type",
            "status",
            "start_date",
            "end_date",
            "is_public",
            "requires_acknowledgement",
            "acknowledged",
            "created_at",
        ]
        read_only_fields = ["id", "campground", "campsite", "acknowledged", "created_at"]

    def get_acknowledged(self, obj: SafetyAlert) -> bool:
        request = self.context.get("request")
        if not request or not request.user.is_authenticated:
            return False
        return obj.acknowledgements.filter(user=request.user).exists()

    def validate(self, attrs):  # type: ignore
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date must be after start date."})
        return attrs


class SafetyAlertTargetSerializer(serializers.Serializer):
    """Optional campsite an alert is raised on instead of the whole campground."""

    campsite = serializers.IntegerField(required=False, allow_null=True, min_value=1)
