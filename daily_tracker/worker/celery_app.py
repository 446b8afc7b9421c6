"""Celery application configuration."""

import logging
from celery import Celery
from celery.schedules import crontab

from daily_tracker.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "daily_tracker",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.timezone,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=600,  # 10 minutes
    task_soft_time_limit=540,
    # Import tasks when worker starts
    imports=("daily_tracker.worker.tasks",),
)

# Celery Beat schedule
celery_app.conf.beat_schedule = {
    "refresh-external-reports": {
        "task": "daily_tracker.worker.tasks.refresh_external_reports",
        "schedule": settings.external_refresh_minutes * 60.0,
    },
    "refresh-report-status": {
        "task": "daily_tracker.worker.tasks.refresh_report_status",
        "schedule": crontab(minute=0),  # Hourly, catches window edges and day rollover
    },
}

# Import tasks to register them
from daily_tracker.worker import tasks  # noqa: E402, F401
