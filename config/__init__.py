"""Top-level package for Django configuration.

This package exposes application configuration for the AdventureMate
platform. It contains settings modules for different environments and entry
points for WSGI and ASGI.
"""

# Load the Celery app with Django so shared tasks get registered.
from .celery import app as celery_app  # noqa: F401
