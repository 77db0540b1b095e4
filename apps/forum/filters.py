"""FilterSet for forum post listing."""

from __future__ import annotations

import django_filters  # type: ignore
from django.db.models import Q  # type: ignore

from .models import ForumPost


class ForumPostFilterSet(django_filters.FilterSet):
    category = django_filters.ChoiceFilter(choices=ForumPost.Category.choices)
    type = django_filters.ChoiceFilter(choices=ForumPost.PostType.choices)
    tags = django_filters.CharFilter(method="filter_tags")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = ForumPost
        fields = ["category", "type"]

    def filter_tags(self, queryset, name, value):  # type: ignore
        names = [tag.strip().lower() for tag in value.split(",") if tag.strip()]
        if not names:
            return queryset
        return queryset.filter(tags__name__in=names).distinct()

    def filter_search(self, queryset, name, value):  # type: ignore
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value) | Q(content__icontains=value) | Q(tags__name__icontains=value)
        ).distinct()
