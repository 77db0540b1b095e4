"""API tests for the community forum."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.forum.models import ForumPost, ForumReply, PostVote

pytestmark = pytest.mark.django_db


def _post(author, **fields) -> ForumPost:
    defaults = {"title": "Best stove?", "content": "Looking for a light stove.", "author": author}
    defaults.update(fields)
    return ForumPost.objects.create(**defaults)


def _detail(post, suffix: str = "detail", **kwargs):
    return reverse(f"forum-post-{suffix}", kwargs={"pk": post.pk, **kwargs})


def test_create_post_normalises_tags(api_client, guest):
    api_client.force_authenticate(guest)

    response = api_client.post(
        reverse("forum-post-list"),
        {
            "title": "  Winter camping  ",
            "content": "How cold is too cold?",
            "category": ForumPost.Category.CAMPING_TIPS,
            "type": ForumPost.PostType.QUESTION,
            "tags": ["Winter", "winter", "gear "],
        },
        format="json",
    )

    assert response.status_code == status.HTTP_201_CREATED, response.data
    assert response.data["title"] == "Winter camping"
    assert response.data["tags"] == ["gear", "winter"]
    assert response.data["author"]["id"] == guest.pk
    assert response.data["vote_count"] == 0
    assert response.data["reply_count"] == 0
    assert response.data["user_vote"] is None


def test_create_requires_authentication(api_client):
    response = api_client.post(reverse("forum-post-list"), {"title": "Hi", "content": "There"}, format="json")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_tag_longer_than_twenty_characters_is_rejected(api_client, guest):
    api_client.force_authenticate(guest)

    response = api_client.post(
        reverse("forum-post-list"),
        {"title": "Tags", "content": "Too long", "tags": ["x" * 21]},
        format="json",
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "tags" in response.data


def test_list_shows_active_posts_with_filters(api_client, guest, owner):
    tips = _post(guest, title="Fire tips", category=ForumPost.Category.CAMPING_TIPS)
    tips.tags.create(name="fire")
    _post(owner, title="Closed thread", status=ForumPost.Status.CLOSED)
    _post(owner, title="Removed", status=ForumPost.Status.DELETED)
    _post(owner, title="Lake trip", content="Anyone at Inle?", category=ForumPost.Category.DESTINATIONS)
    url = reverse("forum-post-list")

    everything = api_client.get(url)
    by_category = api_client.get(url, {"category": ForumPost.Category.CAMPING_TIPS})
    by_tag = api_client.get(url, {"tags": "fire,unknown"})
    by_search = api_client.get(url, {"search": "inle"})
    closed = api_client.get(url, {"status": ForumPost.Status.CLOSED})
    deleted = api_client.get(url, {"status": ForumPost.Status.DELETED})

    assert everything.status_code == status.HTTP_200_OK
    assert everything.data["count"] == 2
    assert [item["title"] for item in by_category.data["results"]] == ["Fire tips"]
    assert [item["title"] for item in by_tag.data["results"]] == ["Fire tips"]
    assert [item["title"] for item in by_search.data["results"]] == ["Lake trip"]
    assert [item["title"] for item in closed.data["results"]] == ["Closed thread"]
    assert deleted.data["count"] == 0


def test_list_is_paginated_by_limit(api_client, guest):
    for index in range(3):
        _post(guest, title=f"Post {index}")

    response = api_client.get(reverse("forum-post-list"), {"limit": 2})

    assert response.data["count"] == 3
    assert len(response.data["results"]) == 2
    assert response.data["next"] is not None


def test_sort_orders(api_client, guest, owner, platform_admin):
    quiet = _post(guest, title="Quiet")
    popular = _post(guest, title="Popular", views=10)
    pinned = _post(guest, title="Pinned", is_sticky=True)
    for voter in (guest, owner, platform_admin):
        PostVote.objects.create(post=popular, user=voter, value=1)
    ForumReply.objects.create(post=quiet, author=owner, content="Hello")
    ForumPost.objects.filter(pk=quiet.pk).update(created_at=timezone.now() - timedelta(days=1))
    url = reverse("forum-post-list")

    def titles(sort):
        return [item["title"] for item in api_client.get(url, {"sort": sort}).data["results"]]

    assert titles("most_voted")[0] == "Popular"
    assert titles("most_replied")[0] == "Quiet"
    assert titles("most_viewed")[0] == "Popular"
    assert titles("oldest")[0] == "Quiet"
    assert titles("featured")[0] == pinned.title


def test_retrieve_counts_views_except_for_the_author(api_client, guest, owner):
    post = _post(guest)
    ForumReply.objects.create(post=post, author=owner, content="Try a canister stove.")

    anonymous = api_client.get(_detail(post))
    api_client.force_authenticate(guest)
    by_author = api_client.get(_detail(post))

    assert anonymous.status_code == status.HTTP_200_OK
    assert anonymous.data["views"] == 1
    assert [reply["content"] for reply in anonymous.data["replies"]] == ["Try a canister stove."]
    assert by_author.data["views"] == 1
    post.refresh_from_db()
    assert post.views == 1


def test_vote_toggles_and_switches(api_client, guest, owner):
    post = _post(owner)
    api_client.force_authenticate(guest)
    url = _detail(post, "vote")

    first = api_client.post(url, {"vote_type": "upvote"}, format="json")
    removed = api_client.post(url, {"vote_type": "upvote"}, format="json")
    api_client.post(url, {"vote_type": "upvote"}, format="json")
    switched = api_client.post(url, {"vote_type": "downvote"}, format="json")
    invalid = api_client.post(url, {"vote_type": "sideways"}, format="json")

    assert first.data == {"upvotes": 1, "downvotes": 0, "vote_count": 1, "user_vote": "upvote"}
    assert removed.data["vote_count"] == 0
    assert removed.data["user_vote"] is None
    assert switched.data == {"upvotes": 0, "downvotes": 1, "vote_count": -1, "user_vote": "downvote"}
    assert invalid.status_code == status.HTTP_400_BAD_REQUEST
    assert PostVote.objects.filter(post=post).count() == 1


def test_only_author_or_admin_edits_and_locked_posts_are_frozen(api_client, guest, owner, platform_admin):
    post = _post(guest, type=ForumPost.PostType.QUESTION)
    url = _detail(post)

    api_client.force_authenticate(owner)
    assert api_client.patch(url, {"title": "Hijacked"}, format="json").status_code == status.HTTP_403_FORBIDDEN

    api_client.force_authenticate(guest)
    edited = api_client.patch(url, {"title": "Best light stove?", "type": "discussion"}, format="json")
    assert edited.status_code == status.HTTP_200_OK, edited.data
    assert edited.data["title"] == "Best light stove?"
    assert edited.data["type"] == ForumPost.PostType.QUESTION

    ForumPost.objects.filter(pk=post.pk).update(is_locked=True)
    assert api_client.patch(url, {"title": "Again"}, format="json").status_code == status.HTTP_403_FORBIDDEN

    api_client.force_authenticate(platform_admin)
    assert api_client.patch(url, {"title": "Admin fix"}, format="json").status_code == status.HTTP_200_OK


def test_author_delete_hides_post_and_admin_delete_removes_it(api_client, guest, platform_admin):
    soft = _post(guest, title="Mine")
    hard = _post(guest, title="Spam")

    api_client.force_authenticate(guest)
    assert api_client.delete(_detail(soft)).status_code == status.HTTP_204_NO_CONTENT
    assert api_client.get(_detail(soft)).status_code == status.HTTP_404_NOT_FOUND
    soft.refresh_from_db()
    assert soft.status == ForumPost.Status.DELETED

    api_client.force_authenticate(platform_admin)
    assert api_client.delete(_detail(hard)).status_code == status.HTTP_204_NO_CONTENT
    assert not ForumPost.objects.filter(pk=hard.pk).exists()


def test_replies_respect_locks_and_closure(api_client, guest, owner, platform_admin):
    post = _post(owner)
    before = post.last_activity
    url = _detail(post, "replies")
    api_client.force_authenticate(guest)

    created = api_client.post(url, {"content": "  Use a windscreen.  "}, format="json")
    assert created.status_code == status.HTTP_201_CREATED, created.data
    assert created.data["content"] == "Use a windscreen."
    post.refresh_from_db()
    assert post.last_activity > before
    assert [reply["id"] for reply in api_client.get(url).data] == [created.data["id"]]

    ForumPost.objects.filter(pk=post.pk).update(is_locked=True)
    assert api_client.post(url, {"content": "More"}, format="json").status_code == status.HTTP_403_FORBIDDEN
    api_client.force_authenticate(platform_admin)
    assert api_client.post(url, {"content": "Mod note"}, format="json").status_code == status.HTTP_201_CREATED

    ForumPost.objects.filter(pk=post.pk).update(is_locked=False, status=ForumPost.Status.CLOSED)
    api_client.force_authenticate(guest)
    assert api_client.post(url, {"content": "Late"}, format="json").status_code == status.HTTP_400_BAD_REQUEST


def test_accepting_answers_on_questions_only(api_client, guest, owner):
    question = _post(guest, type=ForumPost.PostType.QUESTION)
    first = ForumReply.objects.create(post=question, author=owner, content="First")
    second = ForumReply.objects.create(post=question, author=owner, content="Second")
    discussion = _post(guest)
    other = ForumReply.objects.create(post=discussion, author=owner, content="Chat")

    api_client.force_authenticate(owner)
    forbidden = api_client.post(_detail(question, "reply-accept", reply_id=first.pk))
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    api_client.force_authenticate(guest)
    api_client.post(_detail(question, "reply-accept", reply_id=first.pk))
    accepted = api_client.post(_detail(question, "reply-accept", reply_id=second.pk))
    not_question = api_client.post(_detail(discussion, "reply-accept", reply_id=other.pk))
    wrong_post = api_client.post(_detail(question, "reply-accept", reply_id=other.pk))

    assert accepted.status_code == status.HTTP_200_OK
    assert list(question.replies.filter(is_accepted=True)) == [second]
    assert not_question.status_code == status.HTTP_400_BAD_REQUEST
    assert wrong_post.status_code == status.HTTP_404_NOT_FOUND


def test_reply_votes_and_deletion(api_client, guest, owner):
    post = _post(owner)
    reply = ForumReply.objects.create(post=post, author=owner, content="Bring layers")
    api_client.force_authenticate(guest)

    voted = api_client.post(_detail(post, "reply-vote", reply_id=reply.pk), {"vote_type": "upvote"}, format="json")
    forbidden = api_client.delete(_detail(post, "reply-detail", reply_id=reply.pk))
    api_client.force_authenticate(owner)
    deleted = api_client.delete(_detail(post, "reply-detail", reply_id=reply.pk))

    assert voted.data["upvotes"] == 1
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN
    assert deleted.status_code == status.HTTP_204_NO_CONTENT
    assert not ForumReply.objects.filter(pk=reply.pk).exists()


def test_categories_and_stats(api_client, guest, owner):
    post = _post(guest, category=ForumPost.Category.SAFETY, views=4)
    _post(owner, category=ForumPost.Category.SAFETY, views=1)
    _post(owner, status=ForumPost.Status.CLOSED, views=100)
    ForumReply.objects.create(post=post, author=owner, content="Noted")
    PostVote.objects.create(post=post, user=owner, value=1)

    categories = api_client.get(reverse("forum-post-categories"))
    stats = api_client.get(reverse("forum-post-stats"))

    assert {"value": "camping-tips", "label": "Camping Tips"} in categories.data
    assert len(categories.data) == 8
    assert stats.data["stats"] == {"total_posts": 2, "total_views": 5, "total_replies": 1, "total_votes": 1}
    assert stats.data["category_stats"] == [{"category": "safety", "count": 2}]
    assert len(stats.data["recent_activity"]) == 2


def test_moderation_is_admin_only(api_client, guest, platform_admin):
    post = _post(guest)
    url = _detail(post, "moderate")

    api_client.force_authenticate(guest)
    assert api_client.post(url, {"action": "pin"}, format="json").status_code == status.HTTP_403_FORBIDDEN

    api_client.force_authenticate(platform_admin)
    pinned = api_client.post(url, {"action": "pin", "reason": "Useful"}, format="json")
    locked = api_client.post(url, {"action": "lock"}, format="json")
    unknown = api_client.post(url, {"action": "explode"}, format="json")
    closed = api_client.post(url, {"action": "close"}, format="json")

    assert pinned.data["is_pinned"] is True
    assert locked.data["is_locked"] is True
    assert unknown.status_code == status.HTTP_400_BAD_REQUEST
    assert closed.data["status"] == ForumPost.Status.CLOSED
