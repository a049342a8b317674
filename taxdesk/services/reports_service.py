"""
TaxDesk - Reports Service

Period reports (returns filing, notices, payments, client summary), the
practice dashboard summary, rolling revenue, top clients and the
per-client report. Compliance status and revenue trend are delegated to
ComplianceService.

All money is summed as Decimal. Breakdown dicts are keyed in sorted order.
"""

import logging
import uuid
from collections import Counter, defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.models.client import GSTStatus
from taxdesk.models.gst_return import GSTReturn, ReturnStatus
from taxdesk.models.invoice import Invoice, InvoiceStatus
from taxdesk.models.notice import Notice, NoticeStatus
from taxdesk.models.payment import GSTPayment, PaymentStatus
from taxdesk.models.registration import GSTRegistration, RegistrationStatus
from taxdesk.schemas.reports import (
    ClientReport,
    ClientReportSummary,
    ClientRow,
    ClientSummary,
    ClientSummaryReport,
    FinancialSummary,
    MonthlyRevenue,
    NoticeManagementReport,
    NoticeRow,
    NoticeSummary,
    PaymentAnalysisReport,
    PaymentRow,
    PracticeSummary,
    RegistrationSummary,
    ReportModel,
    ReturnRow,
    ReturnsFilingReport,
    ReturnSummary,
    TopClient,
)
from taxdesk.services.compliance_service import (
    ComplianceService,
    is_late_filing,
    period_label,
    validate_period,
)
from taxdesk.services.entity_store import EntityStore
from taxdesk.utils.dates import (
    as_utc,
    engine_tz,
    local_midnight,
    local_today,
    month_label,
    month_window,
    shift_month,
)
from taxdesk.utils.error_handling import (
    ClientNotFoundException,
    InvalidReportTypeException,
    ValidationException,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

REPORT_TYPES = (
    "client-summary",
    "compliance-status",
    "notice-management",
    "payment-analysis",
    "returns-filing",
    "revenue-trend",
)


def money(values: Iterable[Optional[Decimal]]) -> Decimal:
    return sum((v or ZERO for v in values), ZERO)


def breakdown(keys: Iterable[str]) -> Dict[str, int]:
    counts = Counter(keys)
    return {key: counts[key] for key in sorted(counts)}


def _client_name(record) -> Optional[str]:
    client = getattr(record, "client", None)
    return client.business_name if client is not None else None


def return_row(gst_return: GSTReturn, paid_amount: Decimal = ZERO) -> ReturnRow:
    return ReturnRow(
        id=gst_return.id,
        client_id=gst_return.client_id,
        business_name=_client_name(gst_return),
        return_type=gst_return.return_type.value,
        tax_period=gst_return.period,
        due_date=gst_return.due_date,
        status=gst_return.status.value,
        filed_at=gst_return.filed_at,
        paid_amount=paid_amount,
    )


def notice_row(notice: Notice) -> NoticeRow:
    return NoticeRow(
        id=notice.id,
        client_id=notice.client_id,
        business_name=_client_name(notice),
        notice_number=notice.notice_number,
        notice_type=notice.notice_type,
        subject=notice.subject,
        received_on=notice.received_on,
        due_date=notice.due_date,
        status=notice.status.value,
    )


def payment_row(payment: GSTPayment) -> PaymentRow:
    return PaymentRow(
        id=payment.id,
        client_id=payment.client_id,
        business_name=_client_name(payment),
        return_reference=payment.gst_return.reference if payment.gst_return else None,
        payment_type=payment.payment_type.value,
        amount=payment.amount,
        status=payment.status.value,
        paid_at=payment.paid_at,
    )


class ReportsService:
    """Builds the report payloads behind /reports and /analytics."""

    def __init__(self, db: AsyncSession, tz: Optional[ZoneInfo] = None):
        self.db = db
        self.store = EntityStore(db)
        self.tz = tz or engine_tz()
        self.compliance = ComplianceService(db, tz=self.tz)

    async def generate_report(
        self,
        report_type: str,
        year: int,
        month: Optional[int] = None,
        *,
        now: datetime,
    ) -> ReportModel:
        """
        Dispatch a report by type.

        Raises:
            InvalidReportTypeException: unknown report type
            InvalidTaxPeriodException: bad year or month
        """
        if report_type not in REPORT_TYPES:
            raise InvalidReportTypeException(report_type, list(REPORT_TYPES))
        validate_period(year, month)
        logger.info(f"Generating {report_type} report for {period_label(year, month)}")

        if report_type == "compliance-status":
            return await self.compliance.compute_compliance_report(year, month, now=now)
        if report_type == "revenue-trend":
            return await self.compliance.compute_revenue_trend(year)
        if report_type == "returns-filing":
            return await self.returns_filing(year, month)
        if report_type == "notice-management":
            return await self.notice_management(year, month, now=now)
        if report_type == "payment-analysis":
            return await self.payment_analysis(year, month)
        return await self.client_summary(year, month)

    def _window_timestamps(self, year: int, month: Optional[int]):
        start, end = month_window(year, month)
        return local_midnight(start, self.tz), local_midnight(end, self.tz)

    # ===========================================
    # PERIOD REPORTS
    # ===========================================

    async def client_summary(self, year: int, month: Optional[int] = None) -> ClientSummaryReport:
        """Clients onboarded in the period with their filing activity."""
        start_ts, end_ts = self._window_timestamps(year, month)
        start, end = month_window(year, month)

        clients = await self.store.find_clients_created_between(start_ts, end_ts)
        registrations = await self.store.find_registrations(start_ts, end_ts)
        returns = await self.store.find_returns_due_between(start, end)
        return_counts = await self.store.count_per_client(GSTReturn)
        registration_counts = await self.store.count_per_client(GSTRegistration)
        notice_counts = await self.store.count_per_client(Notice)

        return ClientSummaryReport(
            total_clients=len(clients),
            active_gst=sum(1 for c in clients if c.gst_status == GSTStatus.ACTIVE),
            inactive_gst=sum(1 for c in clients if c.gst_status != GSTStatus.ACTIVE),
            new_registrations=sum(1 for r in registrations if r.status == RegistrationStatus.APPROVED),
            total_returns_filed=sum(1 for r in returns if r.status.is_completed),
            overdue_returns=sum(1 for r in returns if r.status == ReturnStatus.OVERDUE),
            clients=[
                ClientRow(
                    id=c.id,
                    business_name=c.business_name,
                    gstin=c.gstin,
                    pan=c.pan,
                    gst_status=c.gst_status.value,
                    returns=return_counts.get(c.id, 0),
                    registrations=registration_counts.get(c.id, 0),
                    notices=notice_counts.get(c.id, 0),
                )
                for c in clients
            ],
            period=period_label(year, month),
        )

    async def returns_filing(self, year: int, month: Optional[int] = None) -> ReturnsFilingReport:
        """Returns due in the period, by status and form, with tax paid against them."""
        start, end = month_window(year, month)
        returns = await self.store.find_returns_due_between(start, end)
        payments = await self.store.find_payments_for_returns([r.id for r in returns])

        paid_by_return: Dict[uuid.UUID, Decimal] = defaultdict(lambda: ZERO)
        for payment in payments:
            paid_by_return[payment.return_id] += payment.amount or ZERO

        status_counts = Counter(r.status for r in returns)
        return ReturnsFilingReport(
            total_returns=len(returns),
            filed=status_counts[ReturnStatus.FILED],
            overdue=status_counts[ReturnStatus.OVERDUE],
            draft=status_counts[ReturnStatus.DRAFT],
            processed=status_counts[ReturnStatus.PROCESSED],
            rejected=status_counts[ReturnStatus.REJECTED],
            return_type_breakdown=breakdown(r.return_type.value for r in returns),
            total_tax_amount=money(p.amount for p in payments),
            returns=[return_row(r, paid_by_return.get(r.id, ZERO)) for r in returns],
            period=period_label(year, month),
        )

    async def notice_management(
        self,
        year: int,
        month: Optional[int] = None,
        *,
        now: datetime,
    ) -> NoticeManagementReport:
        """Notices received in the period."""
        start, end = month_window(year, month)
        today = local_today(now, self.tz)
        notices = await self.store.find_notices_received_between(start, end)

        status_counts = Counter(n.status for n in notices)
        return NoticeManagementReport(
            total_notices=len(notices),
            received=status_counts[NoticeStatus.RECEIVED],
            in_progress=status_counts[NoticeStatus.IN_PROGRESS],
            replied=status_counts[NoticeStatus.REPLIED],
            resolved=status_counts[NoticeStatus.RESOLVED],
            overdue=sum(
                1 for n in notices
                if n.status != NoticeStatus.RESOLVED and n.due_date < today
            ),
            notice_type_breakdown=breakdown(n.notice_type for n in notices),
            notices=[notice_row(n) for n in notices],
            period=period_label(year, month),
        )

    async def payment_analysis(self, year: int, month: Optional[int] = None) -> PaymentAnalysisReport:
        """GST deposits recorded in the period."""
        start_ts, end_ts = self._window_timestamps(year, month)
        payments = await self.store.find_payments_created_between(start_ts, end_ts)

        status_counts = Counter(p.status for p in payments)
        return PaymentAnalysisReport(
            total_payments=len(payments),
            paid=status_counts[PaymentStatus.PAID],
            pending=status_counts[PaymentStatus.PENDING],
            failed=status_counts[PaymentStatus.FAILED],
            refunded=status_counts[PaymentStatus.REFUNDED],
            total_amount=money(p.amount for p in payments),
            paid_amount=money(p.amount for p in payments if p.status == PaymentStatus.PAID),
            pending_amount=money(p.amount for p in payments if p.status == PaymentStatus.PENDING),
            payment_type_breakdown=breakdown(p.payment_type.value for p in payments),
            payments=[payment_row(p) for p in payments],
            period=period_label(year, month),
        )

    # ===========================================
    # ANALYTICS
    # ===========================================

    async def practice_summary(self, *, now: datetime) -> PracticeSummary:
        """Headline numbers across every client."""
        today = local_today(now, self.tz)
        month_start, _ = month_window(today.year, today.month)
        last_start, _ = month_window(*shift_month(today.year, today.month, -1))

        clients = await self.store.find_clients()
        registrations = await self.store.find_registrations()
        returns = await self.store.find_returns_due_between()
        invoices = await self.store.find_invoices_issued_between()
        notices = await self.store.find_notices_received_between()

        month_start_ts = local_midnight(month_start, self.tz)
        outstanding_invoices = [i for i in invoices if i.status in InvoiceStatus.outstanding()]
        registration_counts = Counter(r.status for r in registrations)
        notice_counts = Counter(n.status for n in notices)

        return PracticeSummary(
            clients=ClientSummary(
                total=len(clients),
                active=sum(1 for c in clients if c.gst_status == GSTStatus.ACTIVE),
                inactive=sum(1 for c in clients if c.gst_status != GSTStatus.ACTIVE),
                new_this_month=sum(1 for c in clients if as_utc(c.created_at) >= month_start_ts),
            ),
            registrations=RegistrationSummary(
                total=len(registrations),
                draft=registration_counts[RegistrationStatus.DRAFT],
                submitted=registration_counts[RegistrationStatus.SUBMITTED],
                approved=registration_counts[RegistrationStatus.APPROVED],
                rejected=registration_counts[RegistrationStatus.REJECTED],
                pending_approval=sum(
                    1 for r in registrations
                    if r.status == RegistrationStatus.SUBMITTED and r.approved_at is None
                ),
            ),
            returns=ReturnSummary(
                total=len(returns),
                filed=sum(1 for r in returns if r.status.is_completed),
                pending=sum(1 for r in returns if r.status == ReturnStatus.DRAFT),
                overdue=sum(
                    1 for r in returns
                    if r.status in ReturnStatus.outstanding() and r.due_date < today
                ),
                late_filed=sum(1 for r in returns if is_late_filing(r, self.tz)),
            ),
            financial=FinancialSummary(
                total_revenue=money(i.amount for i in invoices),
                pending_payments=money(i.amount for i in outstanding_invoices),
                overdue_payments=money(i.amount for i in outstanding_invoices if i.due_date < today),
                this_month_revenue=money(i.amount for i in invoices if i.issue_date >= month_start),
                last_month_revenue=money(
                    i.amount for i in invoices if last_start <= i.issue_date < month_start
                ),
            ),
            notices=NoticeSummary(
                total=len(notices),
                pending=notice_counts[NoticeStatus.RECEIVED],
                in_progress=notice_counts[NoticeStatus.IN_PROGRESS],
                replied=notice_counts[NoticeStatus.REPLIED],
                resolved=notice_counts[NoticeStatus.RESOLVED],
                overdue=sum(
                    1 for n in notices
                    if n.status != NoticeStatus.RESOLVED and n.due_date < today
                ),
            ),
            generated_at=as_utc(now),
        )

    async def revenue_data(self, months: int = 12, *, now: datetime) -> List[MonthlyRevenue]:
        """Invoiced revenue for the last ``months`` months, oldest first."""
        if months < 1:
            raise ValidationException(
                message="months must be at least 1",
                field="months",
                details={"months": months},
            )

        today = local_today(now, self.tz)
        periods = [shift_month(today.year, today.month, -offset) for offset in range(months - 1, -1, -1)]
        first_start, _ = month_window(*periods[0])
        _, last_end = month_window(*periods[-1])
        invoices = await self.store.find_invoices_issued_between(first_start, last_end)

        by_month: Dict[tuple, List[Invoice]] = defaultdict(list)
        for invoice in invoices:
            by_month[(invoice.issue_date.year, invoice.issue_date.month)].append(invoice)

        return [
            MonthlyRevenue(
                month=month_label(year, month),
                revenue=money(i.amount for i in by_month.get((year, month), [])),
                invoices=len(by_month.get((year, month), [])),
                clients=len({i.client_id for i in by_month.get((year, month), [])}),
            )
            for year, month in periods
        ]

    async def top_clients(self, limit: int = 10) -> List[TopClient]:
        """Clients ranked by invoiced revenue (ties by name, then id)."""
        if limit < 1:
            raise ValidationException(
                message="limit must be at least 1",
                field="limit",
                details={"limit": limit},
            )

        clients = await self.store.find_clients()
        invoices = await self.store.find_invoices_issued_between()
        return_counts = await self.store.count_per_client(GSTReturn)
        registration_counts = await self.store.count_per_client(GSTRegistration)

        revenue: Dict[uuid.UUID, Decimal] = defaultdict(lambda: ZERO)
        for invoice in invoices:
            revenue[invoice.client_id] += invoice.amount or ZERO

        ranked = sorted(
            clients,
            key=lambda c: (-revenue.get(c.id, ZERO), c.business_name, str(c.id)),
        )
        return [
            TopClient(
                id=c.id,
                business_name=c.business_name,
                pan=c.pan,
                revenue=revenue.get(c.id, ZERO),
                returns=return_counts.get(c.id, 0),
                registrations=registration_counts.get(c.id, 0),
            )
            for c in ranked[:limit]
        ]

    async def client_report(self, client_id: uuid.UUID) -> ClientReport:
        """Everything on file for one client."""
        client = await self.store.get_client(client_id)
        if client is None:
            raise ClientNotFoundException(client_id)

        returns = await self.store.find_client_records(client_id, GSTReturn)
        notices = await self.store.find_client_records(client_id, Notice)
        payments = await self.store.find_client_records(client_id, GSTPayment)
        invoices = await self.store.find_client_records(client_id, Invoice)
        registrations = await self.store.find_registrations(client_id=client_id)

        return ClientReport(
            client=ClientRow(
                id=client.id,
                business_name=client.business_name,
                gstin=client.gstin,
                pan=client.pan,
                gst_status=client.gst_status.value,
                returns=len(returns),
                registrations=len(registrations),
                notices=len(notices),
            ),
            returns=[return_row(r) for r in returns],
            notices=[notice_row(n) for n in notices],
            payments=[payment_row(p) for p in payments],
            summary=ClientReportSummary(
                total_registrations=len(registrations),
                approved_registrations=sum(
                    1 for r in registrations if r.status == RegistrationStatus.APPROVED
                ),
                total_returns=len(returns),
                filed_returns=sum(1 for r in returns if r.status.is_completed),
                total_payments=len(payments),
                paid_payments=sum(1 for p in payments if p.status == PaymentStatus.PAID),
                total_notices=len(notices),
                resolved_notices=sum(1 for n in notices if n.status == NoticeStatus.RESOLVED),
                total_invoices=len(invoices),
                paid_invoices=money(i.amount for i in invoices if i.is_paid),
                outstanding_invoices=money(i.amount for i in invoices if not i.is_paid),
            ),
        )
