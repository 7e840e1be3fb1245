"""
Celery application configuration and setup.

Run a worker with the daily schedule enabled:

    celery -A reviewdesk.tasks.celery_app worker --beat --loglevel=info
"""

import ssl

from celery import Celery  # type: ignore
from celery.schedules import crontab  # type: ignore
from reviewdesk.database.config import settings

BROKER_URL = settings.CELERY_BROKER_URL
BACKEND_URL = settings.CELERY_RESULT_BACKEND

celery_app = Celery(
    "reviewdesk_tasks",
    broker=BROKER_URL,
    backend=BACKEND_URL,
    include=["reviewdesk.tasks.insights", "reviewdesk.tasks.reminders"],
)

transport_options = {}

if BACKEND_URL.startswith("rediss://"):
    transport_options.update({"ssl_cert_reqs": ssl.CERT_REQUIRED})

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    result_backend_transport_options=transport_options,
    timezone="UTC",
    enable_utc=True,
    result_expires=3600,  # Results expire after 1 hour
    worker_prefetch_multiplier=1,  # Process one task at a time
    task_acks_late=True,
    worker_max_tasks_per_child=1000,
    beat_schedule={
        "daily-review-digest": {
            "task": "send_daily_review_digest",
            "schedule": crontab(hour=settings.REMINDER_HOUR_UTC, minute=0),
        }
    },
)

if __name__ == "__main__":
    celery_app.start()
