"""Admin registrations for the forum."""

from __future__ import annotations

from django.contrib import admin

from .models import ForumPost, ForumReply, ForumTag


class ForumReplyInline(admin.TabularInline):
    model = ForumReply
    extra = 0
    fields = ("author", "content", "is_accepted", "created_at")
    readonly_fields = ("created_at",)


@admin.register(ForumPost)
class ForumPostAdmin(admin.ModelAdmin):
    list_display = ("title", "author", "category", "type", "status", "is_sticky", "is_pinned", "is_locked", "views")
    list_filter = ("category", "type", "status", "is_locked")
    search_fields = ("title", "content", "author__username")
    filter_horizontal = ("tags",)
    inlines = [ForumReplyInline]


admin.site.register(ForumTag)
