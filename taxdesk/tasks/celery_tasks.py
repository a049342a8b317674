"""
TaxDesk - Celery Tasks

Celery entry points for the scheduled jobs in scheduled_tasks.
"""

import asyncio
import logging
from typing import Any, Dict

from celery import shared_task

from taxdesk.database import async_session_factory
from taxdesk.tasks.scheduled_tasks import TaskRunner, cleanup_read_notifications, scan_deadlines

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper to run async functions in Celery tasks."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@shared_task(name='taxdesk.tasks.celery_tasks.scan_deadlines_task')
def scan_deadlines_task() -> Dict[str, Any]:
    """Daily deadline scan."""
    return run_async(TaskRunner(async_session_factory).run_task(scan_deadlines))


@shared_task(name='taxdesk.tasks.celery_tasks.cleanup_notifications_task')
def cleanup_notifications_task() -> Dict[str, Any]:
    """Clean up old read notifications."""
    result = run_async(TaskRunner(async_session_factory).run_task(cleanup_read_notifications))
    logger.info(f"Cleaned up {result['deleted_count']} old notifications")
    return result
