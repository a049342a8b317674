"""
TaxDesk - GST Payment Model

Tax deposits (challans) made on behalf of a client.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taxdesk.models.base import ClientOwnedModel

if TYPE_CHECKING:
    from taxdesk.models.client import Client
    from taxdesk.models.gst_return import GSTReturn


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentType(str, Enum):
    TAX = "tax"
    INTEREST = "interest"
    LATE_FEE = "late_fee"
    PENALTY = "penalty"


class GSTPayment(ClientOwnedModel):
    """GST deposit, optionally linked to the return it settles."""
    
    __tablename__ = "gst_payments"
    
    return_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("gst_returns.id", ondelete="SET NULL"),
        nullable=True,
    )
    
    cpin: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="Common portal identification number of the challan",
    )
    payment_type: Mapped[PaymentType] = mapped_column(
        SQLEnum(PaymentType),
        default=PaymentType.TAX,
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True,
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    
    client: Mapped["Client"] = relationship("Client", back_populates="payments")
    gst_return: Mapped[Optional["GSTReturn"]] = relationship("GSTReturn")
