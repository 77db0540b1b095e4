"""Bookings app package.

This app encapsulates the booking domain: quoting stays, Stripe checkout,
and the idempotent conversion of a paid checkout session into a single
booking. The checkout session identifier is unique on the booking, so
duplicate success callbacks, webhook redeliveries and concurrent requests
all resolve to the same row.
"""
