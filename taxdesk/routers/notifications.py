"""
TaxDesk - Notifications Router

API endpoints for deadline alerts and the practitioner inbox.

Features:
- Trigger the deadline scan
- List notifications with filtering
- Unread count
- Mark as read (selected/all)
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.database import get_async_session
from taxdesk.models.notification import NotificationType
from taxdesk.schemas.notification import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationListResponse,
    NotificationResponse,
    ScanResultResponse,
    UnreadCountResponse,
)
from taxdesk.services.deadline_alert_service import DeadlineAlertService
from taxdesk.services.notification_service import NotificationService
from taxdesk.utils.dates import utcnow


router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post(
    "/check",
    response_model=ScanResultResponse,
    summary="Run deadline scan",
    description="Scan outstanding returns, notices and invoices and create any alerts due today.",
)
async def check_deadlines(db: AsyncSession = Depends(get_async_session)):
    now = utcnow()
    result = await DeadlineAlertService(db).scan_and_notify(now)
    return ScanResultResponse(**result.to_dict(), checked_at=now)


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List notifications",
)
async def list_notifications(
    user_id: uuid.UUID = Query(..., description="Practitioner whose inbox to list"),
    unread_only: bool = Query(False),
    notification_type: Optional[NotificationType] = Query(None),
    client_id: Optional[uuid.UUID] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_async_session),
):
    """List notifications for a practitioner, newest first."""
    service = NotificationService(db)

    notifications, total = await service.get_user_notifications(
        user_id=user_id,
        unread_only=unread_only,
        client_id=client_id,
        notification_type=notification_type,
        limit=limit,
        offset=offset,
    )
    unread_count = await service.get_unread_count(user_id)

    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        total=total,
        unread_count=unread_count,
    )


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Get unread notification count",
)
async def get_unread_count(
    user_id: uuid.UUID = Query(...),
    db: AsyncSession = Depends(get_async_session),
):
    service = NotificationService(db)
    return UnreadCountResponse(unread_count=await service.get_unread_count(user_id))


@router.post(
    "/mark-read",
    response_model=MarkReadResponse,
    summary="Mark notifications as read",
)
async def mark_read(
    request: MarkReadRequest,
    db: AsyncSession = Depends(get_async_session),
):
    service = NotificationService(db)
    if request.mark_all:
        updated = await service.mark_all_as_read(request.user_id)
    else:
        updated = await service.mark_as_read(request.notification_ids, request.user_id)
    return MarkReadResponse(updated=updated)
