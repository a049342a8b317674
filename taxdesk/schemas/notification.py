"""
TaxDesk - Notification Schemas

Request/response schemas for the notifications API.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from taxdesk.models.notification import NotificationType


class NotificationResponse(BaseModel):
    """Schema for notification response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    message: str
    notification_type: NotificationType
    is_read: bool
    read_at: Optional[datetime] = None
    client_id: Optional[uuid.UUID] = None
    extra_data: Optional[dict] = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Schema for notification list response."""
    notifications: List[NotificationResponse]
    total: int
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class MarkReadRequest(BaseModel):
    """Mark specific notifications, or all of them, as read."""
    user_id: uuid.UUID
    notification_ids: List[uuid.UUID] = Field(default_factory=list)
    mark_all: bool = False

    @model_validator(mode="after")
    def require_target(self):
        if not self.mark_all and not self.notification_ids:
            raise ValueError("Provide notification_ids or set mark_all")
        return self


class MarkReadResponse(BaseModel):
    updated: int


class ScanResultResponse(BaseModel):
    """Outcome of a deadline scan."""
    created: int
    suppressed: int
    skipped: int
    failed: int
    by_type: dict
    checked_at: datetime
