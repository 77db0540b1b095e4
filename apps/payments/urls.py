"""URL routing for payment provider callbacks."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import StripeWebhookView

urlpatterns = [
    path("stripe/webhook/", StripeWebhookView.as_view(), name="stripe-webhook"),
]
