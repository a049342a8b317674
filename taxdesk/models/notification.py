"""
TaxDesk - Notification Model

Model for storing practitioner notifications.

Notifications come from two places:
- Deadline alerts raised by the daily scan (returns, notices, invoices)
- Explicit events such as "return filed" or "new notice received"

The table doubles as the alert dedup index: a deadline alert is not repeated
for the same recipient and alert key on the same calendar day.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taxdesk.models.base import BaseModel

if TYPE_CHECKING:
    from taxdesk.models.user import User
    from taxdesk.models.client import Client


class NotificationType(str, Enum):
    """Severity of a notification as shown in the inbox."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class Notification(BaseModel):
    """Notification delivered to a practitioner's in-app inbox."""
    
    __tablename__ = "notifications"
    
    # Recipient
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    
    # Optional client association
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    
    # Notification content
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    
    notification_type: Mapped[NotificationType] = mapped_column(
        SQLEnum(NotificationType),
        default=NotificationType.INFO,
        nullable=False,
        index=True,
    )
    
    # Status tracking
    is_read: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
    )
    read_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    # Additional data (JSON)
    extra_data: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Alert key, obligation id and day delta for deadline alerts",
    )
    
    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="notifications",
    )
    client: Mapped[Optional["Client"]] = relationship("Client")
    
    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.notification_type}, user={self.user_id})>"
    
    def mark_as_read(self, when: Optional[datetime] = None) -> None:
        """Mark notification as read."""
        if not self.is_read:
            self.is_read = True
            self.read_at = when or datetime.now(timezone.utc)
