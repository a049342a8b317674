"""
TaxDesk - Client Model

Business clients managed by a practitioner. Clients are deactivated by a
GST status change, never deleted by the engine.
"""

import uuid
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taxdesk.models.base import BaseModel

if TYPE_CHECKING:
    from taxdesk.models.user import User
    from taxdesk.models.gst_return import GSTReturn
    from taxdesk.models.notice import Notice
    from taxdesk.models.invoice import Invoice
    from taxdesk.models.payment import GSTPayment
    from taxdesk.models.registration import GSTRegistration


class GSTStatus(str, Enum):
    """Registration status of the client's GSTIN."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class Client(BaseModel):
    """
    Client business.
    
    Owns GST returns, notices, invoices, payments and registrations.
    """
    
    __tablename__ = "clients"
    
    # Owning practitioner
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    
    # Business identity
    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    gstin: Mapped[Optional[str]] = mapped_column(String(15), nullable=True, index=True)
    pan: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    
    gst_status: Mapped[GSTStatus] = mapped_column(
        SQLEnum(GSTStatus),
        default=GSTStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    
    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="clients")
    returns: Mapped[List["GSTReturn"]] = relationship(
        "GSTReturn",
        back_populates="client",
        cascade="all, delete-orphan",
    )
    notices: Mapped[List["Notice"]] = relationship(
        "Notice",
        back_populates="client",
        cascade="all, delete-orphan",
    )
    invoices: Mapped[List["Invoice"]] = relationship(
        "Invoice",
        back_populates="client",
        cascade="all, delete-orphan",
    )
    payments: Mapped[List["GSTPayment"]] = relationship(
        "GSTPayment",
        back_populates="client",
        cascade="all, delete-orphan",
    )
    registrations: Mapped[List["GSTRegistration"]] = relationship(
        "GSTRegistration",
        back_populates="client",
        cascade="all, delete-orphan",
    )
    
    @property
    def is_active(self) -> bool:
        return self.gst_status == GSTStatus.ACTIVE
    
    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name={self.business_name})>"
