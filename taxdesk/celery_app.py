"""
TaxDesk - Celery Configuration

Celery configuration for the scheduled deadline scan.
Uses Redis as the message broker and result backend.
"""

from celery import Celery
from celery.schedules import crontab

from taxdesk.config import settings


# Create Celery app
celery_app = Celery(
    'taxdesk',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['taxdesk.tasks.celery_tasks'],
)

# Celery configuration
celery_app.conf.update(
    # Serialization
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',

    # Beat runs in the same timezone as the alert day boundary
    timezone=settings.engine_timezone,
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,  # 5 minutes
    task_soft_time_limit=240,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Result backend settings
    result_expires=86400,  # 24 hours

    # Beat schedule for periodic tasks
    beat_schedule={
        # Deadline alerts once a day
        'scan-deadlines': {
            'task': 'taxdesk.tasks.celery_tasks.scan_deadlines_task',
            'schedule': crontab(hour=settings.deadline_scan_hour, minute=0),
        },

        # Clean up old read notifications weekly
        'cleanup-old-notifications': {
            'task': 'taxdesk.tasks.celery_tasks.cleanup_notifications_task',
            'schedule': crontab(day_of_week=0, hour=2, minute=0),  # Sunday 2 AM
        },
    },
)
