"""
TaxDesk - Compliance Service

Compliance scoring and trend aggregation across the practice's clients.

Score per client:
    max(0, 100 - 10 * overdue_returns - 20 * pending_notices)

Buckets:
    fully compliant      score == 100
    partially compliant  70 <= score < 100
    non-compliant        score < 70

Everything here is a pure projection of the store plus the injected "now";
nothing is written back.
"""

import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.models.gst_return import GSTReturn
from taxdesk.models.invoice import InvoiceStatus
from taxdesk.models.notice import NoticeStatus
from taxdesk.schemas.reports import (
    ClientComplianceRow,
    ComplianceMetric,
    ComplianceReport,
    RevenueData,
    RevenueTrend,
)
from taxdesk.services.entity_store import EntityStore
from taxdesk.utils.dates import (
    engine_tz,
    local_today,
    month_label,
    month_window,
    shift_month,
)
from taxdesk.utils.error_handling import InvalidTaxPeriodException, ValidationException

logger = logging.getLogger(__name__)

RETURN_PENALTY = 10
NOTICE_PENALTY = 20
PARTIAL_COMPLIANCE_FLOOR = 70

ZERO = Decimal("0")


def compliance_score(overdue_returns: int, pending_notices: int) -> int:
    return max(0, 100 - RETURN_PENALTY * overdue_returns - NOTICE_PENALTY * pending_notices)


def compliance_bucket(score: int) -> str:
    """'fully', 'partially' or 'non' compliant."""
    if score == 100:
        return "fully"
    if score >= PARTIAL_COMPLIANCE_FLOOR:
        return "partially"
    return "non"


def is_late_filing(gst_return: GSTReturn, tz: Optional[ZoneInfo] = None) -> bool:
    """Filed on a calendar day after the due date."""
    if gst_return.filed_at is None:
        return False
    filed_on = local_today(gst_return.filed_at, tz)
    return filed_on > gst_return.due_date


def percent(part: int, whole: int) -> int:
    """Whole-number percentage rounded half up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    value = Decimal(100 * part) / Decimal(whole)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def period_label(year: int, month: Optional[int] = None) -> str:
    return f"{month}-{year}" if month else str(year)


def validate_period(year: int, month: Optional[int] = None) -> None:
    if not 1 <= year <= 9998:
        raise InvalidTaxPeriodException(year)
    if month is not None and not 1 <= month <= 12:
        raise InvalidTaxPeriodException(year, month)


class ComplianceService:
    """
    Aggregates compliance reports, monthly filing metrics and revenue trends.

    The clock is always passed in; no method reads the system time.
    """

    def __init__(self, db: AsyncSession, tz: Optional[ZoneInfo] = None):
        self.db = db
        self.store = EntityStore(db)
        self.tz = tz or engine_tz()

    async def compute_compliance_report(
        self,
        year: int,
        month: Optional[int] = None,
        *,
        now: datetime,
    ) -> ComplianceReport:
        """
        Compliance status of every client for obligations due in the window.

        Args:
            year: Calendar year of the window
            month: Optional month (1-12); None covers the whole year
            now: Evaluation time; "overdue" means due before today's date

        Raises:
            InvalidTaxPeriodException: month outside 1-12 or unusable year
        """
        validate_period(year, month)
        start, end = month_window(year, month)
        today = local_today(now, self.tz)

        rows: List[ClientComplianceRow] = []
        for entry in await self.store.find_all_clients_with_obligations(start, end):
            overdue_returns = sum(
                1 for r in entry.returns
                if not r.status.is_completed and r.due_date < today
            )
            pending_notices = sum(
                1 for n in entry.notices
                if n.status != NoticeStatus.RESOLVED and n.due_date < today
            )
            client = entry.client
            rows.append(ClientComplianceRow(
                client_id=client.id,
                business_name=client.business_name,
                gstin=client.gstin,
                gst_status=client.gst_status.value,
                total_returns=len(entry.returns),
                filed_returns=sum(1 for r in entry.returns if r.status.is_completed),
                overdue_returns=overdue_returns,
                total_notices=len(entry.notices),
                pending_notices=pending_notices,
                compliance_score=compliance_score(overdue_returns, pending_notices),
            ))

        buckets: Dict[str, int] = defaultdict(int)
        for row in rows:
            buckets[compliance_bucket(row.compliance_score)] += 1

        average = 0.0
        if rows:
            total = Decimal(sum(row.compliance_score for row in rows))
            average = float((total / Decimal(len(rows))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

        report = ComplianceReport(
            total_clients=len(rows),
            fully_compliant=buckets["fully"],
            partially_compliant=buckets["partially"],
            non_compliant=buckets["non"],
            average_compliance_score=average,
            total_overdue_returns=sum(row.overdue_returns for row in rows),
            total_pending_notices=sum(row.pending_notices for row in rows),
            client_compliance=rows,
            period=period_label(year, month),
        )
        logger.info(
            f"Compliance report {report.period}: {report.total_clients} clients, "
            f"average score {report.average_compliance_score}"
        )
        return report

    async def compute_monthly_metrics(
        self,
        months_back: int = 12,
        *,
        now: datetime,
    ) -> List[ComplianceMetric]:
        """
        Filing performance for the last ``months_back`` calendar months.

        Exactly ``months_back`` entries, oldest first; the month containing
        ``now`` is last.
        """
        if months_back < 1:
            raise ValidationException(
                message="months must be at least 1",
                field="months",
                details={"months": months_back},
            )

        today = local_today(now, self.tz)
        months: List[Tuple[int, int]] = [
            shift_month(today.year, today.month, -offset)
            for offset in range(months_back - 1, -1, -1)
        ]
        first_start, _ = month_window(*months[0])
        _, last_end = month_window(*months[-1])

        by_month: Dict[Tuple[int, int], List[GSTReturn]] = defaultdict(list)
        for gst_return in await self.store.find_returns_due_between(first_start, last_end):
            by_month[(gst_return.due_date.year, gst_return.due_date.month)].append(gst_return)

        metrics = []
        for year, month in months:
            month_returns = by_month.get((year, month), [])
            filed = sum(1 for r in month_returns if r.status.is_completed)
            due = len(month_returns)
            metrics.append(ComplianceMetric(
                month=month_label(year, month),
                year=year,
                month_number=month,
                returns_filed=filed,
                returns_due=due,
                compliance_rate=percent(filed, due),
                late_filings=sum(1 for r in month_returns if is_late_filing(r, self.tz)),
            ))
        return metrics

    async def compute_revenue_trend(self, year: int) -> RevenueTrend:
        """
        Invoice totals for each month of ``year`` plus yearly totals.

        An invoice counts as paid only when its status is PAID; everything
        else is pending.
        """
        validate_period(year)
        start, end = month_window(year)
        invoices = await self.store.find_invoices_issued_between(start, end)

        monthly_data = []
        for month in range(1, 13):
            month_invoices = [inv for inv in invoices if inv.issue_date.month == month]
            paid = [inv for inv in month_invoices if inv.status == InvoiceStatus.PAID]
            pending = [inv for inv in month_invoices if inv.status != InvoiceStatus.PAID]
            monthly_data.append(RevenueData(
                month=month_label(year, month, with_year=False),
                invoices=len(month_invoices),
                total_amount=sum((inv.amount or ZERO for inv in month_invoices), ZERO),
                paid_amount=sum((inv.amount or ZERO for inv in paid), ZERO),
                pending_amount=sum((inv.amount or ZERO for inv in pending), ZERO),
                clients=len({inv.client_id for inv in month_invoices}),
            ))

        paid_invoices = sum(1 for inv in invoices if inv.status == InvoiceStatus.PAID)
        return RevenueTrend(
            year=str(year),
            yearly_total=sum((m.total_amount for m in monthly_data), ZERO),
            yearly_paid=sum((m.paid_amount for m in monthly_data), ZERO),
            yearly_pending=sum((m.pending_amount for m in monthly_data), ZERO),
            total_invoices=len(invoices),
            paid_invoices=paid_invoices,
            pending_invoices=len(invoices) - paid_invoices,
            monthly_data=monthly_data,
        )
