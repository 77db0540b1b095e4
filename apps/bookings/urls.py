"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import BookingQuoteView, BookingViewSet, CheckoutSessionView, PaymentSuccessView

router = SimpleRouter()
router.register(r"", BookingViewSet, basename="booking")

urlpatterns = [
    path("<int:campground_id>/book/", BookingQuoteView.as_view(), name="booking-quote"),
    path("<int:campground_id>/checkout/", CheckoutSessionView.as_view(), name="booking-checkout"),
    path("<int:campground_id>/success/", PaymentSuccessView.as_view(), name="booking-payment-success"),
    path("", include(router.urls)),
]
