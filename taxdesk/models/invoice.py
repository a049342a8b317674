"""
TaxDesk - Invoice Model

Professional-fee invoices raised by the practice against its clients.
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


class InvoiceStatus(str, Enum):
    """Invoice status workflow."""
    DRAFT = "draft"           # Not yet sent
    SENT = "sent"             # Awaiting payment
    PAID = "paid"             # Payment received
    CANCELLED = "cancelled"
    
    @classmethod
    def outstanding(cls) -> tuple:
        return (cls.DRAFT, cls.SENT)


class Invoice(ClientOwnedModel):
    """Invoice for services rendered to a client."""
    
    __tablename__ = "invoices"
    
    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    # Dates
    issue_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
        default=Decimal("0.00"),
    )
    
    status: Mapped[InvoiceStatus] = mapped_column(
        SQLEnum(InvoiceStatus),
        default=InvoiceStatus.DRAFT,
        nullable=False,
        index=True,
    )
    
    client: Mapped["Client"] = relationship("Client", back_populates="invoices")
    
    @property
    def reference(self) -> str:
        return f"Invoice {self.invoice_number}"
    
    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID
    
    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, number={self.invoice_number}, status={self.status})>"
