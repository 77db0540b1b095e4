"""API views for analytics.

Provides endpoints to retrieve aggregated metrics such as total
bookings, revenue and average ratings, scoped to what the requesting
user is allowed to see.
"""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model  # type: ignore
from django.db import models  # type: ignore
from rest_framework.permissions import IsAuthenticated  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.models import Booking
from apps.bookings.serializers import BookingSerializer
from apps.campgrounds.models import Campground, Campsite
from apps.owners.models import OwnerApplication
from apps.reviews.models import Review
from apps.users.permissions import IsPlatformAdmin, is_owner, is_platform_admin

User = get_user_model()


def _revenue(booking_qs) -> Decimal:
    return (
        booking_qs.filter(paid=True)
        .exclude(status=Booking.Status.CANCELLED)
        .aggregate(total=models.Sum("total_price"))
        .get("total")
        or Decimal("0")
    )


class OverviewAnalyticsView(APIView):
    """Return general statistics for the platform or a specific user."""

    permission_classes = [IsAuthenticated]

    def get(self, request, format=None):  # type: ignore
        user = request.user
        # Admin sees all, owner sees own campgrounds, guest sees their bookings
        if is_platform_admin(user):
            campground_qs = Campground.objects.all()
            booking_qs = Booking.objects.all()
            review_qs = Review.objects.all()
        elif is_owner(user):
            campground_qs = Campground.objects.filter(owner=user)
            booking_qs = Booking.objects.filter(campground__owner=user)
            review_qs = Review.objects.filter(campground__owner=user)
        else:
            campground_qs = Campground.objects.none()
            booking_qs = Booking.objects.filter(user=user)
            review_qs = Review.objects.filter(author=user)

        avg_rating = review_qs.aggregate(avg=models.Avg("rating")).get("avg")

        return Response(
            {
                "campgrounds": campground_qs.count(),
                "bookings": booking_qs.count(),
                "active_bookings": booking_qs.exclude(status=Booking.Status.CANCELLED).count(),
                "revenue": _revenue(booking_qs),
                "avg_rating": round(avg_rating, 2) if avg_rating is not None else None,
            }
        )


class DashboardAnalyticsView(APIView):
    """Platform-wide totals for the admin dashboard."""

    permission_classes = [IsPlatformAdmin]

    def get(self, request, format=None):  # type: ignore
        applications = {
            row["status"]: row["total"]
            for row in OwnerApplication.objects.values("status").annotate(total=models.Count("id"))
        }
        recent = (
            Booking.objects.active()
            .select_related("user", "campground", "campsite")
            .order_by("-created_at")[:5]
        )
        return Response(
            {
                "stats": {
                    "total_users": User.objects.count(),
                    "total_owners": User.objects.filter(role=User.RoleChoices.OWNER).count(),
                    "total_campgrounds": Campground.objects.count(),
                    "total_campsites": Campsite.objects.count(),
                    "total_bookings": Booking.objects.count(),
                    "cancelled_bookings": Booking.objects.filter(status=Booking.Status.CANCELLED).count(),
                    "total_reviews": Review.objects.count(),
                    "revenue": _revenue(Booking.objects.all()),
                    "owner_applications": {
                        status: applications.get(status, 0) for status in OwnerApplication.Status.values
                    },
                },
                "recent_bookings": BookingSerializer(recent, many=True).data,
            }
        )
