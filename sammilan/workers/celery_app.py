"""
Celery application configuration.
"""

from celery import Celery
from celery.schedules import crontab

from sammilan.config import settings

# Create Celery app
celery_app = Celery(
    "sammilan",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "sammilan.workers.reconcile",
    ],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Kolkata",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

# Beat schedule for periodic tasks
celery_app.conf.beat_schedule = {
    # Resolve donations stuck in PENDING
    "reconcile-pending-donations": {
        "task": "sammilan.workers.reconcile.reconcile_pending_donations",
        "schedule": crontab(minute=f"*/{settings.reconcile_interval_minutes}"),
    },
}
