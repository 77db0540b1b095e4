"""Forum workflows: voting, replies, accepted answers and moderation."""

from __future__ import annotations

import logging

from django.db import transaction  # type: ignore
from django.db.models import Count, Q, Sum  # type: ignore

from apps.users.permissions import is_platform_admin

from .models import ForumPost, ForumReply, PostVote, Vote

logger = logging.getLogger(__name__)

VOTE_VALUES = {"upvote": Vote.Value.UP, "downvote": Vote.Value.DOWN}
VOTE_NAMES = {value: name for name, value in VOTE_VALUES.items()}
MODERATION_ACTIONS = ("pin", "sticky", "lock", "close", "delete")


class ForumError(Exception):
    status_code = 400

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


def toggle_vote(target: ForumPost | ForumReply, user, vote_type: str) -> str | None:
    """Apply a vote to a post or reply.

    Voting the same way twice removes the vote; voting the other way
    switches it. Returns the user's resulting vote name or None.
    """
    value = VOTE_VALUES[vote_type]
    with transaction.atomic():
        vote, created = target.votes.get_or_create(user=user, defaults={"value": value})
        if created:
            return vote_type
        if vote.value == value:
            vote.delete()
            return None
        vote.value = value
        vote.save(update_fields=["value"])
        return vote_type


def vote_summary(target: ForumPost | ForumReply) -> dict[str, int]:
    counts = target.votes.aggregate(
        upvotes=Count("pk", filter=Q(value=Vote.Value.UP)),
        downvotes=Count("pk", filter=Q(value=Vote.Value.DOWN)),
    )
    return {**counts, "vote_count": counts["upvotes"] - counts["downvotes"]}


def user_vote(target: ForumPost | ForumReply, user) -> str | None:
    if not user or not user.is_authenticated:
        return None
    value = target.votes.filter(user=user).values_list("value", flat=True).first()
    return VOTE_NAMES.get(value)


def add_reply(post: ForumPost, user, content: str) -> ForumReply:
    if post.is_locked and not is_platform_admin(user):
        raise ForumError("This post is locked and cannot be replied to", status_code=403)
    if post.status == ForumPost.Status.CLOSED and not is_platform_admin(user):
        raise ForumError("This post is closed to new replies")
    with transaction.atomic():
        reply = ForumReply.objects.create(post=post, author=user, content=content)
        post.touch()
    logger.info("Reply %s added to forum post %s by user %s", reply.pk, post.pk, user.pk)
    return reply


def accept_answer(post: ForumPost, reply: ForumReply) -> ForumReply:
    if not post.is_question:
        raise ForumError("Only questions can have accepted answers")
    with transaction.atomic():
        post.replies.exclude(pk=reply.pk).update(is_accepted=False)
        reply.is_accepted = True
        reply.save(update_fields=["is_accepted", "updated_at"])
    return reply


def moderate(post: ForumPost, action: str, *, moderator, reason: str = "") -> ForumPost:
    if action == "pin":
        post.is_pinned = not post.is_pinned
    elif action == "sticky":
        post.is_sticky = not post.is_sticky
    elif action == "lock":
        post.is_locked = not post.is_locked
    elif action == "close":
        post.status = ForumPost.Status.CLOSED
    elif action == "delete":
        post.status = ForumPost.Status.DELETED
    else:
        raise ForumError("Invalid moderation action")
    post.save(update_fields=["is_pinned", "is_sticky", "is_locked", "status", "updated_at"])
    logger.info("Forum post %s moderated (%s) by user %s: %s", post.pk, action, moderator.pk, reason)
    return post


def forum_stats() -> dict:
    active = ForumPost.objects.filter(status=ForumPost.Status.ACTIVE)
    totals = active.aggregate(total_posts=Count("pk"), total_views=Sum("views"))
    category_stats = list(
        active.values("category").annotate(count=Count("pk")).order_by("-count", "category")
    )
    recent = active.select_related("author").order_by("-last_activity")[:5]
    return {
        "stats": {
            "total_posts": totals["total_posts"],
            "total_views": totals["total_views"] or 0,
            "total_replies": ForumReply.objects.filter(post__in=active).count(),
            "total_votes": PostVote.objects.filter(post__in=active).count(),
        },
        "category_stats": category_stats,
        "recent_activity": [
            {
                "id": post.pk,
                "title": post.title,
                "last_activity": post.last_activity,
                "author": post.author.username,
            }
            for post in recent
        ],
    }
