"""
TaxDesk - Base Model

Abstract bases for every table: UUID key, UTC timestamps and, for the
records a practice keeps per client, the owning client.

SQLite drops the UTC offset on the way in, so timestamps read back there
are naive; normalize with ``taxdesk.utils.dates.as_utc``.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from taxdesk.database import Base


class TimestampMixin:
    """created_at/updated_at from the database clock unless set explicitly."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class BaseModel(Base, TimestampMixin):
    """Abstract table with a UUID primary key and timestamps."""

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class ClientOwnedModel(BaseModel):
    """
    A record filed under one client: returns, notices, invoices, payments
    and registrations. Deleted with the client.
    """

    __abstract__ = True

    @declared_attr
    def client_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            Uuid(as_uuid=True),
            ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
