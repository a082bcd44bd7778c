"""
Celery application configuration.

Defines the Celery app with Redis broker, the task modules and the
daily beat schedule: listing expiry and exchange-rate refresh.
"""

from celery import Celery
from celery.schedules import crontab

from app.config import settings

celery_app = Celery(
    "colislink",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.tasks.expiry_tasks", "app.tasks.rate_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

# Beat schedule: daily jobs, UTC
celery_app.conf.beat_schedule = {
    "expire-itineraries": {
        "task": "app.tasks.expiry_tasks.expire_itineraries",
        "schedule": crontab(hour=2, minute=0),
    },
    "expire-requests": {
        "task": "app.tasks.expiry_tasks.expire_requests",
        "schedule": crontab(hour=2, minute=30),
    },
    "refresh-exchange-rates": {
        "task": "app.tasks.rate_tasks.refresh_exchange_rates",
        "schedule": crontab(hour=3, minute=0),
    },
}
