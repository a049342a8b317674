"""
TaxDesk - Entity Store

Query layer the engine reads from and writes notifications into.

Outstanding returns, notices and invoices are handed out as immutable
``Obligation`` snapshots. Connection failures surface as
StoreUnavailableException; the caller decides whether to retry.
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import String, func, select, type_coerce
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import defer, selectinload

from taxdesk.models.client import Client
from taxdesk.models.gst_return import GSTReturn, ReturnStatus
from taxdesk.models.invoice import Invoice, InvoiceStatus
from taxdesk.models.notice import Notice, NoticeStatus
from taxdesk.models.notification import Notification, NotificationType
from taxdesk.models.payment import GSTPayment
from taxdesk.models.registration import GSTRegistration
from taxdesk.services.deadline_scanner import Obligation, ObligationType
from taxdesk.utils.error_handling import store_errors

logger = logging.getLogger(__name__)


@dataclass
class ClientWithObligations:
    """A client with the returns and notices due inside a reporting window."""
    client: Client
    returns: List[GSTReturn] = field(default_factory=list)
    notices: List[Notice] = field(default_factory=list)


def _between(stmt, column, start: Optional[date], end: Optional[date]):
    """Apply a half-open [start, end) filter when bounds are given."""
    if start is not None:
        stmt = stmt.where(column >= start)
    if end is not None:
        stmt = stmt.where(column < end)
    return stmt


def _recipient(client: Optional[Client]) -> Any:
    return client.user_id if client is not None else None


def _client_name(client: Optional[Client]) -> Optional[str]:
    return client.business_name if client is not None else None


def return_to_obligation(row: GSTReturn, due_date: Any) -> Obligation:
    return Obligation(
        id=row.id,
        obligation_type=ObligationType.RETURN_FILING,
        client_id=row.client_id,
        client_name=_client_name(row.client),
        recipient_id=_recipient(row.client),
        reference=row.reference,
        due_date=due_date,
        status=row.status,
        amount=row.tax_liability,
        completed_at=row.filed_at,
    )


def notice_to_obligation(row: Notice, due_date: Any) -> Obligation:
    return Obligation(
        id=row.id,
        obligation_type=ObligationType.NOTICE_REPLY,
        client_id=row.client_id,
        client_name=_client_name(row.client),
        recipient_id=_recipient(row.client),
        reference=row.reference,
        due_date=due_date,
        status=row.status,
        amount=row.demand_amount,
        completed_at=row.resolved_at,
    )


def invoice_to_obligation(row: Invoice, due_date: Any) -> Obligation:
    return Obligation(
        id=row.id,
        obligation_type=ObligationType.INVOICE_PAYMENT,
        client_id=row.client_id,
        client_name=_client_name(row.client),
        recipient_id=_recipient(row.client),
        reference=row.reference,
        due_date=due_date,
        status=row.status,
        amount=row.amount,
        completed_at=row.paid_at,
    )


# Model, outstanding statuses and snapshot builder per obligation type
_OBLIGATION_SOURCES = {
    ObligationType.RETURN_FILING: (GSTReturn, ReturnStatus.outstanding(), return_to_obligation),
    ObligationType.NOTICE_REPLY: (Notice, NoticeStatus.outstanding(), notice_to_obligation),
    ObligationType.INVOICE_PAYMENT: (Invoice, InvoiceStatus.outstanding(), invoice_to_obligation),
}


class EntityStore:
    """SQLAlchemy-backed store for clients, obligations and notifications."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # DEADLINE SCAN
    # ===========================================

    async def find_outstanding(
        self,
        obligation_type: ObligationType,
        due_on_or_before: Optional[date] = None,
    ) -> List[Obligation]:
        """
        Outstanding obligations of one type, oldest due date first.

        Args:
            obligation_type: Which table to scan
            due_on_or_before: Optional horizon; None returns every outstanding item
        """
        model, statuses, to_obligation = _OBLIGATION_SOURCES[obligation_type]

        # Raw due date; the scanner rejects malformed values one row at a time
        raw_due_date = type_coerce(model.due_date, String).label("raw_due_date")
        query = (
            select(model, raw_due_date)
            .options(selectinload(model.client), defer(model.due_date, raiseload=True))
            .where(model.status.in_(statuses))
            .order_by(model.due_date, model.id)
        )
        if due_on_or_before is not None:
            query = query.where(model.due_date <= due_on_or_before)

        async with store_errors(f"find_outstanding({obligation_type.value})"):
            result = await self.db.execute(query)
            rows = result.all()

        logger.debug(f"{len(rows)} outstanding {obligation_type.value} rows (horizon {due_on_or_before})")
        return [to_obligation(row, raw) for row, raw in rows]

    async def find_notifications_since(
        self,
        recipient_id: uuid.UUID,
        since: datetime,
        title_contains: Optional[str] = None,
    ) -> List[Notification]:
        """Notifications for a recipient created at or after ``since``."""
        query = (
            select(Notification)
            .where(Notification.user_id == recipient_id)
            .where(Notification.created_at >= since)
            .order_by(Notification.created_at)
        )
        if title_contains:
            query = query.where(Notification.title.contains(title_contains, autoescape=True))

        async with store_errors("find_notifications_since"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def create_notification(
        self,
        user_id: uuid.UUID,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.INFO,
        client_id: Optional[uuid.UUID] = None,
        extra_data: Optional[Dict[str, Any]] = None,
        created_at: Optional[datetime] = None,
    ) -> Notification:
        """
        Persist and commit one notification.

        The session is rolled back if the write fails so the next write in
        the same batch starts clean.
        """
        notification = Notification(
            user_id=user_id,
            client_id=client_id,
            title=title,
            message=message,
            notification_type=notification_type,
            extra_data=extra_data,
            is_read=False,
        )
        if created_at is not None:
            notification.created_at = created_at
            notification.updated_at = created_at

        async with store_errors("create_notification"):
            try:
                self.db.add(notification)
                await self.db.flush()
                await self.db.refresh(notification)
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        return notification

    # ===========================================
    # REPORTING
    # ===========================================

    async def find_clients(self) -> List[Client]:
        """All clients in a stable order (business name, then id)."""
        async with store_errors("find_clients"):
            result = await self.db.execute(
                select(Client).order_by(Client.business_name, Client.id)
            )
            return list(result.scalars().all())

    async def get_client(self, client_id: uuid.UUID) -> Optional[Client]:
        async with store_errors("get_client"):
            result = await self.db.execute(select(Client).where(Client.id == client_id))
            return result.scalar_one_or_none()

    async def find_all_clients_with_obligations(
        self,
        window_start: Optional[date] = None,
        window_end: Optional[date] = None,
    ) -> List[ClientWithObligations]:
        """
        Every client with its returns and notices due inside [start, end).

        Clients with nothing due in the window are still included.
        """
        clients = await self.find_clients()
        returns = await self.find_returns_due_between(window_start, window_end)
        notices = await self.find_notices_due_between(window_start, window_end)

        returns_by_client = defaultdict(list)
        for ret in returns:
            returns_by_client[ret.client_id].append(ret)
        notices_by_client = defaultdict(list)
        for notice in notices:
            notices_by_client[notice.client_id].append(notice)

        return [
            ClientWithObligations(
                client=client,
                returns=returns_by_client.get(client.id, []),
                notices=notices_by_client.get(client.id, []),
            )
            for client in clients
        ]

    async def find_returns_due_between(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[GSTReturn]:
        query = _between(
            select(GSTReturn).options(selectinload(GSTReturn.client)),
            GSTReturn.due_date, start, end,
        )
        async with store_errors("find_returns_due_between"):
            result = await self.db.execute(query.order_by(GSTReturn.due_date, GSTReturn.id))
            return list(result.scalars().all())

    async def find_notices_due_between(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[Notice]:
        query = _between(select(Notice), Notice.due_date, start, end)
        async with store_errors("find_notices_due_between"):
            result = await self.db.execute(query.order_by(Notice.due_date, Notice.id))
            return list(result.scalars().all())

    async def find_notices_received_between(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[Notice]:
        query = _between(
            select(Notice).options(selectinload(Notice.client)),
            Notice.received_on, start, end,
        )
        async with store_errors("find_notices_received_between"):
            result = await self.db.execute(query.order_by(Notice.received_on, Notice.id))
            return list(result.scalars().all())

    async def find_invoices_issued_between(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[Invoice]:
        query = _between(
            select(Invoice).options(selectinload(Invoice.client)),
            Invoice.issue_date, start, end,
        )
        async with store_errors("find_invoices_issued_between"):
            result = await self.db.execute(query.order_by(Invoice.issue_date, Invoice.id))
            return list(result.scalars().all())

    async def find_payments_created_between(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[GSTPayment]:
        query = _between(
            select(GSTPayment).options(
                selectinload(GSTPayment.client),
                selectinload(GSTPayment.gst_return),
            ),
            GSTPayment.created_at, start, end,
        )
        async with store_errors("find_payments_created_between"):
            result = await self.db.execute(query.order_by(GSTPayment.created_at, GSTPayment.id))
            return list(result.scalars().all())

    async def find_payments_for_returns(self, return_ids: List[uuid.UUID]) -> List[GSTPayment]:
        if not return_ids:
            return []
        async with store_errors("find_payments_for_returns"):
            result = await self.db.execute(
                select(GSTPayment)
                .where(GSTPayment.return_id.in_(return_ids))
                .order_by(GSTPayment.id)
            )
            return list(result.scalars().all())

    async def count_per_client(self, model) -> Dict[uuid.UUID, int]:
        """Row counts of a client-owned model, keyed by client id."""
        async with store_errors(f"count_per_client({model.__tablename__})"):
            result = await self.db.execute(
                select(model.client_id, func.count(model.id))
                .group_by(model.client_id)
            )
            return {client_id: count for client_id, count in result.all()}

    async def find_clients_created_between(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Client]:
        query = _between(select(Client), Client.created_at, start, end)
        async with store_errors("find_clients_created_between"):
            result = await self.db.execute(query.order_by(Client.business_name, Client.id))
            return list(result.scalars().all())

    async def find_registrations(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        client_id: Optional[uuid.UUID] = None,
    ) -> List[GSTRegistration]:
        """Registrations created inside [start, end), optionally for one client."""
        query = _between(select(GSTRegistration), GSTRegistration.created_at, start, end)
        if client_id is not None:
            query = query.where(GSTRegistration.client_id == client_id)
        async with store_errors("find_registrations"):
            result = await self.db.execute(query.order_by(GSTRegistration.id))
            return list(result.scalars().all())

    async def find_client_records(self, client_id: uuid.UUID, model) -> list:
        """Every row of a client-owned model for one client."""
        query = (
            select(model)
            .options(selectinload(model.client))
            .where(model.client_id == client_id)
        )
        if model is GSTPayment:
            query = query.options(selectinload(GSTPayment.gst_return))
        async with store_errors(f"find_client_records({model.__tablename__})"):
            result = await self.db.execute(query.order_by(model.created_at, model.id))
            return list(result.scalars().all())

    async def get_return(self, return_id: uuid.UUID) -> Optional[GSTReturn]:
        async with store_errors("get_return"):
            result = await self.db.execute(
                select(GSTReturn)
                .options(selectinload(GSTReturn.client))
                .where(GSTReturn.id == return_id)
            )
            return result.scalar_one_or_none()

    async def get_notice(self, notice_id: uuid.UUID) -> Optional[Notice]:
        async with store_errors("get_notice"):
            result = await self.db.execute(
                select(Notice)
                .options(selectinload(Notice.client))
                .where(Notice.id == notice_id)
            )
            return result.scalar_one_or_none()
