"""
TaxDesk - Background Tasks

Task definitions that can be run either synchronously (for development,
via TaskRunner) or from Celery beat (for production).

Each task takes an AsyncSession as its first argument. The clock is read
here, at the scheduling boundary, and passed down to the services.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.config import settings
from taxdesk.services.deadline_alert_service import DeadlineAlertService
from taxdesk.services.notification_service import NotificationService
from taxdesk.utils.dates import utcnow

logger = logging.getLogger(__name__)


# ===========================================
# SCHEDULED TASK: DEADLINE SCAN
# ===========================================

async def scan_deadlines(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    """
    Alert practitioners about upcoming and overdue returns, notices and invoices.
    Should run daily; repeated runs on the same day create nothing new.
    """
    result = await DeadlineAlertService(db).scan_and_notify(now or utcnow())
    return result.to_dict()


# ===========================================
# SCHEDULED TASK: NOTIFICATION CLEANUP
# ===========================================

async def cleanup_read_notifications(
    db: AsyncSession,
    days_old: Optional[int] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Delete read notifications past the retention period.
    Should run weekly.
    """
    days_old = days_old or settings.notification_retention_days
    deleted = await NotificationService(db).delete_old_notifications(days_old=days_old, now=now)
    return {"deleted_count": deleted, "retention_days": days_old}


class TaskRunner:
    """
    Simple task runner for development.
    In production, replace with Celery.
    """

    def __init__(self, db_session_factory):
        self.db_session_factory = db_session_factory

    async def run_task(self, task_func, *args, **kwargs):
        """Run a single task with a new database session."""
        async with self.db_session_factory() as db:
            try:
                result = await task_func(db, *args, **kwargs)
                logger.info(f"Task {task_func.__name__} completed: {result}")
                return result
            except Exception as e:
                logger.error(f"Task {task_func.__name__} failed: {e}")
                raise

    async def run_scheduled_tasks(self, now: Optional[datetime] = None) -> dict:
        """Run all scheduled tasks (for development/testing)."""
        results = {}

        tasks = [
            ("scan_deadlines", scan_deadlines),
            ("cleanup_read_notifications", cleanup_read_notifications),
        ]

        for name, task_func in tasks:
            try:
                result = await self.run_task(task_func, now=now)
                results[name] = {"status": "success", "result": result}
            except Exception as e:
                results[name] = {"status": "error", "error": str(e)}

        return results
