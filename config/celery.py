import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("yacht_booking")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Rate-limit hits older than the window - every 15 minutes
    "purge-booking-rate-limits": {
        "task": "bookings.purge_rate_limit_records",
        "schedule": crontab(minute="*/15"),
        "options": {"expires": 600},
    },
    # Request logs past retention - daily at 03:30
    "purge-booking-request-logs": {
        "task": "bookings.purge_request_logs",
        "schedule": crontab(minute=30, hour=3),
    },
}
