"""Payments app: Stripe hosted checkout and webhook handling."""
