"""
TaxDesk - GST Registration Model

New-registration and amendment applications filed for clients.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taxdesk.models.base import ClientOwnedModel

if TYPE_CHECKING:
    from taxdesk.models.client import Client


class RegistrationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class GSTRegistration(ClientOwnedModel):
    """GST registration application."""
    
    __tablename__ = "gst_registrations"
    
    application_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[RegistrationStatus] = mapped_column(
        SQLEnum(RegistrationStatus),
        default=RegistrationStatus.DRAFT,
        nullable=False,
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    
    client: Mapped["Client"] = relationship("Client", back_populates="registrations")
