"""URL configuration for AdventureMate project.

The `urlpatterns` list routes URLs to views. It includes both Django admin
and application‑level routers provided by Django Rest Framework and each app.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView  # type: ignore

# API versioning. v1 is the current version; the unversioned /api/bookings/
# routes only answer with permanent redirects to v1.

urlpatterns = [
    path('admin/', admin.site.urls),
    # Application URLs
    path('api/v1/auth/', include(('apps.users.auth_urls', 'auth'), namespace='auth')),
    path('api/v1/users/', include('apps.users.urls')),
    path('api/v1/owners/', include('apps.owners.urls')),
    path('api/v1/campgrounds/<int:campground_id>/reviews/', include('apps.reviews.urls')),
    path('api/v1/campgrounds/', include('apps.campgrounds.urls')),
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('api/v1/payments/', include('apps.payments.urls')),
    path('api/v1/analytics/', include('apps.analytics.urls')),
    path('api/v1/forum/', include('apps.forum.urls')),
    path('api/v1/trips/', include('apps.trips.urls')),
    # Deprecated unversioned booking routes
    path('api/bookings/', include('apps.bookings.legacy_urls')),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
]
