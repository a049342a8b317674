"""
TaxDesk - Background Tasks Package

Scheduled jobs runnable from Celery beat or the development TaskRunner.
"""

from taxdesk.tasks.scheduled_tasks import (
    scan_deadlines,
    cleanup_read_notifications,
    TaskRunner,
)

__all__ = [
    "scan_deadlines",
    "cleanup_read_notifications",
    "TaskRunner",
]
