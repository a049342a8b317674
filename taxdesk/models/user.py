"""
TaxDesk - User Model

Practitioner accounts. Every client belongs to exactly one practitioner,
who receives that client's deadline notifications.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taxdesk.models.base import BaseModel

if TYPE_CHECKING:
    from taxdesk.models.client import Client
    from taxdesk.models.notification import Notification


class User(BaseModel):
    """Tax practitioner using the dashboard."""
    
    __tablename__ = "users"
    
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    
    # Relationships
    clients: Mapped[List["Client"]] = relationship(
        "Client",
        back_populates="user",
    )
    notifications: Mapped[List["Notification"]] = relationship(
        "Notification",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    
    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
