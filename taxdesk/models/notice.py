"""
TaxDesk - Notice Model

Notices issued by the GST department that need a reply by a due date.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, DateTime, Numeric, String, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taxdesk.models.base import ClientOwnedModel

if TYPE_CHECKING:
    from taxdesk.models.client import Client


class NoticeStatus(str, Enum):
    """Notice handling status."""
    RECEIVED = "received"
    IN_PROGRESS = "in_progress"
    REPLIED = "replied"
    RESOLVED = "resolved"
    
    @classmethod
    def outstanding(cls) -> tuple:
        return (cls.RECEIVED, cls.IN_PROGRESS)


class Notice(ClientOwnedModel):
    """Department notice (ASMT-10, DRC-01, REG-17, ...) for a client."""
    
    __tablename__ = "notices"
    
    notice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    notice_type: Mapped[str] = mapped_column(String(50), nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    received_on: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    
    status: Mapped[NoticeStatus] = mapped_column(
        SQLEnum(NoticeStatus),
        default=NoticeStatus.RECEIVED,
        nullable=False,
        index=True,
    )
    replied_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    demand_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=True,
    )
    
    client: Mapped["Client"] = relationship("Client", back_populates="notices")
    
    @property
    def reference(self) -> str:
        return f"{self.notice_type} #{self.notice_number}"
    
    def __repr__(self) -> str:
        return f"<Notice(id={self.id}, {self.reference}, status={self.status})>"
