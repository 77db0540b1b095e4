"""Serializers for forum posts and replies."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.users.serializers import UserShortSerializer

from . import services
from .models import ForumPost, ForumReply, ForumTag


class _VoteFieldsMixin(serializers.Serializer):
    upvotes = serializers.IntegerField(read_only=True)
    downvotes = serializers.IntegerField(read_only=True)
    user_vote = serializers.SerializerMethodField()

    def get_user_vote(self, obj) -> str | None:
        request = self.context.get("request")
        return services.user_vote(obj, getattr(request, "user", None))


class ForumReplySerializer(_VoteFieldsMixin, serializers.ModelSerializer):
    author = UserShortSerializer(read_only=True)
    content = serializers.CharField(max_length=2000)

    class Meta:
        model = ForumReply
        fields = [
            "id",
            "post",
            "author",
            "content",
            "is_accepted",
            "upvotes",
            "downvotes",
            "user_vote",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "post", "author", "is_accepted", "created_at", "updated_at"]

    def validate_content(self, value: str) -> str:  # type: ignore
        if not value.strip():
            raise serializers.ValidationError("Reply cannot be empty.")
        return value.strip()


class ForumPostSerializer(_VoteFieldsMixin, serializers.ModelSerializer):
    author = UserShortSerializer(read_only=True)
    tags = serializers.ListField(
        child=serializers.CharField(max_length=20), required=False, max_length=10, write_only=True
    )
    vote_count = serializers.IntegerField(source="vote_score", read_only=True)
    reply_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = ForumPost
        fields = [
            "id",
            "title",
            "content",
            "category",
            "type",
            "tags",
            "author",
            "is_sticky",
            "is_pinned",
            "is_locked",
            "views",
            "status",
            "last_activity",
            "upvotes",
            "downvotes",
            "vote_count",
            "reply_count",
            "user_vote",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "author",
            "is_sticky",
            "is_pinned",
            "is_locked",
            "views",
            "status",
            "last_activity",
            "created_at",
            "updated_at",
        ]

    def validate_title(self, value: str) -> str:  # type: ignore
        if not value.strip():
            raise serializers.ValidationError("Title cannot be empty.")
        return value.strip()

    def validate_tags(self, value: list[str]) -> list[str]:  # type: ignore
        cleaned = []
        for tag in value:
            tag = tag.strip().lower()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return cleaned

    def validate(self, attrs):  # type: ignore
        # The kind of post is fixed once it has been published.
        if self.instance is not None:
            attrs.pop("type", None)
        return attrs

    def _set_tags(self, post: ForumPost, names: list[str]) -> None:
        post.tags.set([ForumTag.objects.get_or_create(name=name)[0] for name in names])

    def create(self, validated_data):  # type: ignore
        tags = validated_data.pop("tags", [])
        post = super().create(validated_data)
        self._set_tags(post, tags)
        return post

    def update(self, instance, validated_data):  # type: ignore
        tags = validated_data.pop("tags", None)
        post = super().update(instance, validated_data)
        if tags is not None:
            self._set_tags(post, tags)
        return post

    def to_representation(self, instance):  # type: ignore
        data = super().to_representation(instance)
        data["tags"] = [tag.name for tag in instance.tags.all()]
        return data


class ForumPostDetailSerializer(ForumPostSerializer):
    replies = serializers.SerializerMethodField()

    class Meta(ForumPostSerializer.Meta):
        fields = ForumPostSerializer.Meta.fields + ["replies"]

    def get_replies(self, obj: ForumPost) -> list[dict]:
        replies = obj.replies.select_related("author").with_counts()
        return ForumReplySerializer(replies, many=True, context=self.context).data


class VoteSerializer(serializers.Serializer):
    vote_type = serializers.ChoiceField(choices=sorted(services.VOTE_VALUES))


class ModerationSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=services.MODERATION_ACTIONS)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)
