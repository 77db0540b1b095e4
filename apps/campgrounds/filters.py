"""FilterSet definitions for campground listing."""

from __future__ import annotations

import django_filters  # type: ignore
from django.db.models import Q  # type: ignore

from .models import Campground


class CampgroundFilterSet(django_filters.FilterSet):
    """Free-text search over title and location plus owner filtering."""

    q = django_filters.CharFilter(method="filter_search")
    location = django_filters.CharFilter(field_name="location", lookup_expr="icontains")
    owner = django_filters.NumberFilter(field_name="owner_id", lookup_expr="exact")
    price_max = django_filters.NumberFilter(method="filter_price_max")

    class Meta:
        model = Campground
        fields = ["location", "owner"]

    def filter_search(self, queryset, name, value):  # type: ignore
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(Q(title__icontains=value) | Q(location__icontains=value))

    def filter_price_max(self, queryset, name, value):  # type: ignore
        return queryset.filter(
            campsites__availability=True,
            campsites__price__lte=value,
        ).distinct()
