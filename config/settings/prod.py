"""Production settings for AdventureMate project.

This module extends the base settings with production specific
configuration. Ensure that sensitive values are provided via
environment variables and that security settings are appropriate for
production use.
"""

from .base import *  # noqa: F401,F403
from .base import get_env

# Never run with debug enabled in production
DEBUG = False

SECRET_KEY = get_env('DJANGO_SECRET_KEY', required=True)
STRIPE_SECRET_KEY = get_env('STRIPE_SECRET_KEY', required=True)
STRIPE_WEBHOOK_SECRET = get_env('STRIPE_WEBHOOK_SECRET', required=True)

# Allowed hosts should be defined explicitly via environment variable
ALLOWED_HOSTS = get_env('DJANGO_ALLOWED_HOSTS', '').split(',')

# Configure secure proxies and cookies
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True

# Email backend (e.g. SMTP) should be configured via environment variables
EMAIL_BACKEND = 'django.core.mail.backends.smtp.EmailBackend'
EMAIL_HOST = get_env('EMAIL_HOST', 'localhost')
EMAIL_PORT = int(get_env('EMAIL_PORT', 25))
EMAIL_USE_TLS = get_env('EMAIL_USE_TLS', 'false').lower() == 'true'
EMAIL_HOST_USER = get_env('EMAIL_HOST_USER', '')
EMAIL_HOST_PASSWORD = get_env('EMAIL_HOST_PASSWORD', '')
