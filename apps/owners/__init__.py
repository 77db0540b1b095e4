"""Owners app: owner onboarding applications and owner-side booking views."""
