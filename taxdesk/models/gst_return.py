"""
TaxDesk - GST Return Model

Periodic GST return filings (GSTR-1, GSTR-3B, ...).

A return is outstanding while DRAFT or OVERDUE. FILED and PROCESSED
returns are complete and never raise deadline alerts.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, DateTime, Numeric, String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taxdesk.models.base import ClientOwnedModel

if TYPE_CHECKING:
    from taxdesk.models.client import Client


class ReturnType(str, Enum):
    """GST return forms."""
    GSTR_1 = "GSTR-1"
    GSTR_3B = "GSTR-3B"
    GSTR_4 = "GSTR-4"
    GSTR_9 = "GSTR-9"
    GSTR_9C = "GSTR-9C"
    CMP_08 = "CMP-08"


class ReturnStatus(str, Enum):
    """Return filing status."""
    DRAFT = "draft"
    FILED = "filed"
    PROCESSED = "processed"
    OVERDUE = "overdue"
    REJECTED = "rejected"
    
    @classmethod
    def outstanding(cls) -> tuple:
        return (cls.DRAFT, cls.OVERDUE)
    
    @property
    def is_completed(self) -> bool:
        return self in (ReturnStatus.FILED, ReturnStatus.PROCESSED)


class GSTReturn(ClientOwnedModel):
    """GST return filing for a client and tax period."""
    
    __tablename__ = "gst_returns"
    
    return_type: Mapped[ReturnType] = mapped_column(SQLEnum(ReturnType), nullable=False)
    period: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Tax period label, e.g. 'Oct 2024' or '2023-24'",
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    
    status: Mapped[ReturnStatus] = mapped_column(
        SQLEnum(ReturnStatus),
        default=ReturnStatus.DRAFT,
        nullable=False,
        index=True,
    )
    filed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    arn: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Acknowledgement reference number",
    )
    tax_liability: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=True,
    )
    
    client: Mapped["Client"] = relationship("Client", back_populates="returns")
    
    @property
    def reference(self) -> str:
        """Stable human reference used in alert titles."""
        return f"{self.return_type.value} - {self.period}"
    
    def __repr__(self) -> str:
        return f"<GSTReturn(id={self.id}, {self.reference}, status={self.status})>"
