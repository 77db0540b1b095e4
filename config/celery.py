import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("adventuremate")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Paid bookings whose campsite dates / confirmation were not written
    "sync-pending-booking-references": {
        "task": "bookings.sync_pending_booking_references",
        "schedule": crontab(minute="*/5"),
        "options": {"expires": 240},
    },
}

app.conf.timezone = "Asia/Yangon"
