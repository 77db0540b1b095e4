"""Outbound notifications (email)."""
