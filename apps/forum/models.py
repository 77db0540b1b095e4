"""Models for the community forum.

Posts are discussions or questions filed under a fixed set of categories.
Replies hang off a post; questions can mark one reply as the accepted
answer. Posts and replies carry one up or down vote per user.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.db.models import Count, F, Q  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


def _vote_counts(prefix: str = "votes") -> dict:
    return {
        "upvotes": Count(prefix, filter=Q(**{f"{prefix}__value": 1}), distinct=True),
        "downvotes": Count(prefix, filter=Q(**{f"{prefix}__value": -1}), distinct=True),
    }


class ForumTag(models.Model):
    name = models.CharField(max_length=20, unique=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class ForumPostQuerySet(models.QuerySet):
    def visible(self):
        return self.exclude(status=ForumPost.Status.DELETED)

    def with_counts(self):
        return self.annotate(
            **_vote_counts(),
            reply_count=Count("replies", distinct=True),
        ).annotate(vote_score=F("upvotes") - F("downvotes"))


class ForumPost(models.Model):
    class Category(models.TextChoices):
        GENERAL = "general", _("General Discussion")
        CAMPING_TIPS = "camping-tips", _("Camping Tips")
        EQUIPMENT = "equipment", _("Equipment & Gear")
        DESTINATIONS = "destinations", _("Destinations")
        SAFETY = "safety", _("Safety & First Aid")
        REVIEWS = "reviews", _("Reviews & Recommendations")
        QUESTIONS = "questions", _("Q&A")
        ANNOUNCEMENTS = "announcements", _("Announcements")

    class PostType(models.TextChoices):
        DISCUSSION = "discussion", _("Discussion")
        QUESTION = "question", _("Question")

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        CLOSED = "closed", _("Closed")
        DELETED = "deleted", _("Deleted")

    title = models.CharField(max_length=200)
    content = models.TextField(max_length=5000)
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="forum_posts")
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.GENERAL)
    type = models.CharField(max_length=20, choices=PostType.choices, default=PostType.DISCUSSION)
    tags = models.ManyToManyField(ForumTag, blank=True, related_name="posts")
    is_sticky = models.BooleanField(default=False)
    is_pinned = models.BooleanField(default=False)
    is_locked = models.BooleanField(default=False)
    views = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    last_activity = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ForumPostQuerySet.as_manager()

    class Meta:
        verbose_name = _("Forum post")
        verbose_name_plural = _("Forum posts")
        ordering = ["-is_sticky", "-is_pinned", "-created_at"]
        indexes = [
            models.Index(fields=["status", "category"], name="forum_status_category_idx"),
            models.Index(fields=["last_activity"], name="forum_last_activity_idx"),
        ]

    def __str__(self) -> str:
        return self.title

    @property
    def is_question(self) -> bool:
        return self.type == self.PostType.QUESTION

    def touch(self) -> None:
        self.last_activity = timezone.now()
        self.save(update_fields=["last_activity", "updated_at"])


class ForumReplyQuerySet(models.QuerySet):
    def with_counts(self):
        return self.annotate(**_vote_counts())


class ForumReply(models.Model):
    post = models.ForeignKey(ForumPost, on_delete=models.CASCADE, related_name="replies")
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="forum_replies")
    content = models.TextField(max_length=2000)
    is_accepted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ForumReplyQuerySet.as_manager()

    class Meta:
        verbose_name = _("Forum reply")
        verbose_name_plural = _("Forum replies")
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"Reply {self.pk} on post {self.post_id}"


class Vote(models.Model):
    class Value(models.IntegerChoices):
        UP = 1, _("Upvote")
        DOWN = -1, _("Downvote")

    value = models.SmallIntegerField(choices=Value.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True


class PostVote(Vote):
    post = models.ForeignKey(ForumPost, on_delete=models.CASCADE, related_name="votes")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="forum_post_votes")

    class Meta:
        constraints = [models.UniqueConstraint(fields=["post", "user"], name="unique_post_vote_per_user")]


class ReplyVote(Vote):
    reply = models.ForeignKey(ForumReply, on_delete=models.CASCADE, related_name="votes")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="forum_reply_votes")

    class Meta:
        constraints = [models.UniqueConstraint(fields=["reply", "user"], name="unique_reply_vote_per_user")]
