"""
TaxDesk - Deadline Scanner

Classifies outstanding obligations by urgency relative to an injected "now".

Severity bands per obligation type:

    returns   critical <= 3 days (incl. due today/overdue), warning <= 7, else info
    notices   critical when due today or overdue, warning <= 5, else nothing
    invoices  critical when due today or overdue, warning <= 3, else nothing

The scanner never reads the system clock and never touches the database.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from taxdesk.config import Settings, settings as default_settings
from taxdesk.models.gst_return import ReturnStatus
from taxdesk.models.invoice import InvoiceStatus
from taxdesk.models.notice import NoticeStatus
from taxdesk.models.notification import NotificationType
from taxdesk.utils.dates import coerce_date, days_until, engine_tz, local_today
from taxdesk.utils.error_handling import ObligationDataError

logger = logging.getLogger(__name__)


class ObligationType(str, Enum):
    """Kinds of due-dated work the engine tracks."""
    RETURN_FILING = "return_filing"
    NOTICE_REPLY = "notice_reply"
    INVOICE_PAYMENT = "invoice_payment"

    @property
    def action(self) -> str:
        return {
            ObligationType.RETURN_FILING: "filing",
            ObligationType.NOTICE_REPLY: "reply",
            ObligationType.INVOICE_PAYMENT: "payment",
        }[self]


# Statuses that still need work. Anything else is complete and never alerts.
OUTSTANDING_STATUSES = {
    ObligationType.RETURN_FILING: frozenset(ReturnStatus.outstanding()),
    ObligationType.NOTICE_REPLY: frozenset(NoticeStatus.outstanding()),
    ObligationType.INVOICE_PAYMENT: frozenset(InvoiceStatus.outstanding()),
}


class Severity(str, Enum):
    """Alert urgency tier."""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def notification_type(self) -> NotificationType:
        return {
            Severity.INFO: NotificationType.INFO,
            Severity.WARNING: NotificationType.WARNING,
            Severity.CRITICAL: NotificationType.ERROR,
        }[self]


@dataclass(frozen=True)
class Obligation:
    """
    Snapshot of one due-dated unit of work.

    Built by the entity store from a return, notice or invoice row so the
    scan can continue even if the session is rolled back mid-batch.
    ``due_date`` is kept raw; imports may carry unparseable values.
    """
    id: Any
    obligation_type: ObligationType
    client_id: Any
    client_name: Optional[str]
    recipient_id: Any
    reference: str
    due_date: Any
    status: Enum
    amount: Optional[Decimal] = None
    completed_at: Optional[datetime] = None

    @property
    def is_outstanding(self) -> bool:
        return self.status in OUTSTANDING_STATUSES[self.obligation_type]


@dataclass(frozen=True)
class DeadlineWindow:
    """Day thresholds for one obligation type."""
    critical_days: int
    warning_days: int
    emit_info: bool = False

    def classify(self, days_until_due: int) -> Optional[Severity]:
        if days_until_due <= self.critical_days:
            return Severity.CRITICAL
        if days_until_due <= self.warning_days:
            return Severity.WARNING
        if self.emit_info:
            return Severity.INFO
        return None


@dataclass(frozen=True)
class ScannedObligation:
    """An outstanding obligation with its computed urgency."""
    obligation: Obligation
    due_date: date
    days_until_due: int
    severity: Severity

    @property
    def is_overdue(self) -> bool:
        return self.days_until_due < 0


@dataclass
class ScanBatch:
    items: List[ScannedObligation] = field(default_factory=list)
    skipped: List[Any] = field(default_factory=list)


def default_windows(config: Optional[Settings] = None) -> Dict[ObligationType, DeadlineWindow]:
    config = config or default_settings
    return {
        ObligationType.RETURN_FILING: DeadlineWindow(
            critical_days=config.return_critical_days,
            warning_days=config.return_warning_days,
            emit_info=config.return_info_alerts,
        ),
        ObligationType.NOTICE_REPLY: DeadlineWindow(
            critical_days=0,
            warning_days=config.notice_warning_days,
        ),
        ObligationType.INVOICE_PAYMENT: DeadlineWindow(
            critical_days=0,
            warning_days=config.invoice_warning_days,
        ),
    }


class DeadlineScanner:
    """Computes days-until-due and severity for outstanding obligations."""

    def __init__(
        self,
        windows: Optional[Dict[ObligationType, DeadlineWindow]] = None,
        tz: Optional[ZoneInfo] = None,
    ):
        self.windows = windows or default_windows()
        self.tz = tz or engine_tz()

    def horizon(self, obligation_type: ObligationType, now: datetime) -> Optional[date]:
        """
        Latest due date that can still produce an alert.

        None when the type emits INFO alerts (every outstanding item counts).
        """
        window = self.windows[obligation_type]
        if window.emit_info:
            return None
        return local_today(now, self.tz) + timedelta(days=window.warning_days)

    def evaluate(self, obligation: Obligation, now: datetime) -> Optional[ScannedObligation]:
        """
        Classify a single obligation.

        Returns None for completed obligations and for ones outside every
        alert band. Raises ObligationDataError for records that cannot be
        evaluated.
        """
        if not obligation.is_outstanding:
            return None

        if obligation.recipient_id is None:
            raise ObligationDataError(obligation.id, "no practitioner assigned to client")

        try:
            due = coerce_date(obligation.due_date)
        except (TypeError, ValueError) as e:
            raise ObligationDataError(obligation.id, f"malformed due date {obligation.due_date!r}") from e

        days = days_until(due, now, self.tz)
        severity = self.windows[obligation.obligation_type].classify(days)
        if severity is None:
            return None

        return ScannedObligation(
            obligation=obligation,
            due_date=due,
            days_until_due=days,
            severity=severity,
        )

    def scan(self, obligations: Iterable[Obligation], now: datetime) -> ScanBatch:
        """Classify every obligation, skipping the ones with bad data."""
        batch = ScanBatch()
        for obligation in obligations:
            try:
                scanned = self.evaluate(obligation, now)
            except ObligationDataError as e:
                logger.warning(f"Skipping {obligation.obligation_type.value}: {e}")
                batch.skipped.append(obligation.id)
                continue
            if scanned is not None:
                batch.items.append(scanned)
        return batch
