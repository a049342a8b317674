"""
TaxDesk - Notification Service

Handles in-app notifications: deadline alerts raised by the daily scan,
explicit events (return filed, new notice received) and the inbox
operations behind the notifications API.
"""

import uuid
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, update, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.models.notification import Notification as NotificationModel, NotificationType
from taxdesk.services.alert_deduplicator import AlertKey
from taxdesk.services.deadline_scanner import ObligationType, ScannedObligation, Severity
from taxdesk.services.entity_store import EntityStore
from taxdesk.utils.dates import as_utc, describe_delta, format_due_date, utcnow
from taxdesk.utils.error_handling import (
    NotFoundException,
    StoreUnavailableException,
    store_errors,
)

logger = logging.getLogger(__name__)


def alert_title(scanned: ScannedObligation, key: AlertKey) -> str:
    """
    Title for a deadline alert. Always ends with ``key.token``.

    e.g. "Overdue: GSTR-3B - Oct 2024 for Acme Traders (filing)"
    """
    if scanned.is_overdue:
        prefix = "Overdue"
    elif scanned.severity == Severity.CRITICAL:
        prefix = "Critical"
    elif scanned.severity == Severity.WARNING:
        prefix = "Reminder"
    else:
        prefix = "Upcoming"
    return f"{prefix}: {key.token}"


def alert_message(scanned: ScannedObligation) -> str:
    obligation = scanned.obligation
    client = obligation.client_name or str(obligation.client_id)
    due = format_due_date(scanned.due_date)
    delta = describe_delta(scanned.days_until_due)

    if obligation.obligation_type == ObligationType.RETURN_FILING:
        message = f"{client} - {obligation.reference} is {delta} ({due})."
        if scanned.severity == Severity.CRITICAL:
            message += " Immediate action required!"
        elif scanned.severity == Severity.WARNING:
            message += " Please file soon."
        return message

    if obligation.obligation_type == ObligationType.NOTICE_REPLY:
        return f"{client} - Reply for {obligation.reference} is {delta} ({due})."

    amount = f" for ₹{obligation.amount:,.2f}" if obligation.amount is not None else ""
    return f"{client} - {obligation.reference}{amount} is {delta} ({due})."


class NotificationService:
    """Service for managing notifications with full database integration."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EntityStore(db)

    async def create_notification(
        self,
        user_id: uuid.UUID,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.INFO,
        client_id: Optional[uuid.UUID] = None,
        metadata: Optional[Dict[str, Any]] = None,
        created_at: Optional[datetime] = None,
    ) -> NotificationModel:
        """
        Create a new notification for a user.

        Args:
            user_id: The practitioner to notify
            title: Notification title
            message: Notification message
            notification_type: Inbox severity
            client_id: Optional associated client
            metadata: Additional data stored in extra_data
            created_at: Creation time; defaults to the database clock
        """
        notification = await self.store.create_notification(
            user_id=user_id,
            title=title,
            message=message,
            notification_type=notification_type,
            client_id=client_id,
            extra_data=metadata,
            created_at=as_utc(created_at) if created_at is not None else None,
        )

        logger.info(f"Notification created for user {user_id}: {title}")
        return notification

    # ===========================================
    # DEADLINE ALERTS
    # ===========================================

    async def emit_deadline_alert(
        self,
        scanned: ScannedObligation,
        key: AlertKey,
        now: datetime,
    ) -> Optional[NotificationModel]:
        """
        Persist one deadline alert.

        Returns None when the write fails for a reason other than the store
        being unreachable; the failure is logged and the scan moves on.
        """
        obligation = scanned.obligation
        metadata = {
            "alert_key": key.to_dict(),
            "obligation_id": str(obligation.id),
            "severity": scanned.severity.value,
            "days_until_due": scanned.days_until_due,
            "due_date": scanned.due_date.isoformat(),
        }

        try:
            return await self.create_notification(
                user_id=obligation.recipient_id,
                title=alert_title(scanned, key),
                message=alert_message(scanned),
                notification_type=scanned.severity.notification_type,
                client_id=obligation.client_id,
                metadata=metadata,
                created_at=now,
            )
        except StoreUnavailableException:
            raise
        except Exception as e:
            logger.error(f"Failed to write alert '{key.token}' for user {obligation.recipient_id}: {e}")
            return None

    # ===========================================
    # INBOX
    # ===========================================

    async def get_notification_by_id(
        self,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Optional[NotificationModel]:
        """Get a notification by ID for a specific user."""
        async with store_errors("get_notification_by_id"):
            result = await self.db.execute(
                select(NotificationModel)
                .where(NotificationModel.id == notification_id)
                .where(NotificationModel.user_id == user_id)
            )
            return result.scalar_one_or_none()

    async def get_user_notifications(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        client_id: Optional[uuid.UUID] = None,
        notification_type: Optional[NotificationType] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[NotificationModel], int]:
        """
        Get notifications for a user with optional filters, newest first.

        Returns:
            Tuple of (notifications, total_count)
        """
        filters = [NotificationModel.user_id == user_id]
        if unread_only:
            filters.append(NotificationModel.is_read == False)  # noqa: E712
        if client_id:
            filters.append(NotificationModel.client_id == client_id)
        if notification_type:
            filters.append(NotificationModel.notification_type == notification_type)

        async with store_errors("get_user_notifications"):
            count_result = await self.db.execute(
                select(func.count(NotificationModel.id)).where(*filters)
            )
            total = count_result.scalar() or 0

            result = await self.db.execute(
                select(NotificationModel)
                .where(*filters)
                .order_by(NotificationModel.created_at.desc(), NotificationModel.id)
                .limit(limit)
                .offset(offset)
            )
            notifications = list(result.scalars().all())

        return notifications, total

    async def get_unread_count(self, user_id: uuid.UUID) -> int:
        """Get count of unread notifications for a user."""
        async with store_errors("get_unread_count"):
            result = await self.db.execute(
                select(func.count(NotificationModel.id))
                .where(NotificationModel.user_id == user_id)
                .where(NotificationModel.is_read == False)  # noqa: E712
            )
            return result.scalar() or 0

    async def mark_as_read(
        self,
        notification_ids: Sequence[uuid.UUID],
        user_id: uuid.UUID,
        now: Optional[datetime] = None,
    ) -> int:
        """Mark the given notifications as read. Returns how many changed."""
        if not notification_ids:
            return 0
        now = as_utc(now) if now else utcnow()

        async with store_errors("mark_as_read"):
            result = await self.db.execute(
                select(NotificationModel)
                .where(NotificationModel.id.in_(list(notification_ids)))
                .where(NotificationModel.user_id == user_id)
            )
            updated = 0
            for notification in result.scalars().all():
                if not notification.is_read:
                    notification.mark_as_read(now)
                    updated += 1
            await self.db.commit()

        logger.info(f"Marked {updated} notifications as read for user {user_id}")
        return updated

    async def mark_all_as_read(self, user_id: uuid.UUID, now: Optional[datetime] = None) -> int:
        """Mark all notifications as read for a user."""
        now = as_utc(now) if now else utcnow()

        async with store_errors("mark_all_as_read"):
            result = await self.db.execute(
                update(NotificationModel)
                .where(NotificationModel.user_id == user_id)
                .where(NotificationModel.is_read == False)  # noqa: E712
                .values(is_read=True, read_at=now)
            )
            await self.db.commit()

        count = result.rowcount
        logger.info(f"Marked {count} notifications as read for user {user_id}")
        return count

    async def delete_old_notifications(
        self,
        days_old: int = 90,
        now: Optional[datetime] = None,
    ) -> int:
        """Delete read notifications older than specified days."""
        now = as_utc(now) if now else utcnow()
        cutoff = now - timedelta(days=days_old)

        async with store_errors("delete_old_notifications"):
            result = await self.db.execute(
                delete(NotificationModel)
                .where(NotificationModel.created_at < cutoff)
                .where(NotificationModel.is_read == True)  # noqa: E712
                .execution_options(synchronize_session="fetch")
            )
            await self.db.commit()

        count = result.rowcount
        logger.info(f"Deleted {count} old notifications")
        return count

    # ===========================================
    # CONVENIENCE METHODS FOR SPECIFIC NOTIFICATIONS
    # ===========================================

    async def notify_return_filed(
        self,
        return_id: uuid.UUID,
        now: Optional[datetime] = None,
    ) -> NotificationModel:
        """Send "return filed" confirmation to the client's practitioner."""
        gst_return = await self.store.get_return(return_id)
        if gst_return is None:
            raise NotFoundException("GST return", return_id)

        client = gst_return.client
        return await self.create_notification(
            user_id=client.user_id,
            client_id=client.id,
            notification_type=NotificationType.SUCCESS,
            title=f"Success: {gst_return.return_type.value} Filed",
            message=(
                f"{client.business_name} - {gst_return.return_type.value} for "
                f"{gst_return.period} has been successfully filed."
            ),
            metadata={
                "return_id": str(gst_return.id),
                "arn": gst_return.arn,
            },
            created_at=now,
        )

    async def notify_new_notice(
        self,
        notice_id: uuid.UUID,
        now: Optional[datetime] = None,
    ) -> NotificationModel:
        """Send "new notice received" alert to the client's practitioner."""
        notice = await self.store.get_notice(notice_id)
        if notice is None:
            raise NotFoundException("Notice", notice_id)

        client = notice.client
        return await self.create_notification(
            user_id=client.user_id,
            client_id=client.id,
            notification_type=NotificationType.WARNING,
            title=f"New Notice Received: {notice.notice_type}",
            message=(
                f"{client.business_name} - New {notice.notice_type} received: "
                f"{notice.subject}. Due date: {format_due_date(notice.due_date)}."
            ),
            metadata={
                "notice_id": str(notice.id),
                "notice_number": notice.notice_number,
            },
            created_at=now,
        )
