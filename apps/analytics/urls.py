"""URL routing for analytics endpoints."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import DashboardAnalyticsView, OverviewAnalyticsView

urlpatterns = [
    path("overview/", OverviewAnalyticsView.as_view(), name="analytics-overview"),
    path("dashboard/", DashboardAnalyticsView.as_view(), name="analytics-dashboard"),
]
