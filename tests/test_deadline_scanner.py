"""
TaxDesk - Deadline Scanner Tests

Severity bands, day arithmetic and per-item error handling. No database.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from taxdesk.models.gst_return import ReturnStatus
from taxdesk.models.invoice import InvoiceStatus
from taxdesk.models.notice import NoticeStatus
from taxdesk.models.notification import NotificationType
from taxdesk.services.deadline_scanner import (
    DeadlineScanner,
    DeadlineWindow,
    Obligation,
    ObligationType,
    Severity,
)
from taxdesk.utils.error_handling import ObligationDataError

NOW = datetime(2024, 11, 20, 9, 0, tzinfo=timezone.utc)
UTC = ZoneInfo("UTC")


def make_obligation(
    obligation_type=ObligationType.RETURN_FILING,
    due_date=date(2024, 11, 18),
    status=None,
    recipient_id="default",
    amount=None,
):
    if status is None:
        status = {
            ObligationType.RETURN_FILING: ReturnStatus.DRAFT,
            ObligationType.NOTICE_REPLY: NoticeStatus.RECEIVED,
            ObligationType.INVOICE_PAYMENT: InvoiceStatus.SENT,
        }[obligation_type]
    return Obligation(
        id=uuid4(),
        obligation_type=obligation_type,
        client_id=uuid4(),
        client_name="Acme Traders",
        recipient_id=uuid4() if recipient_id == "default" else recipient_id,
        reference="GSTR-3B - Oct 2024",
        due_date=due_date,
        status=status,
        amount=amount,
    )


@pytest.fixture
def scanner():
    return DeadlineScanner(tz=UTC)


class TestDaysUntilDue:
    """Whole days to the due date's midnight, rounded up."""

    def test_two_days_overdue(self, scanner):
        scanned = scanner.evaluate(make_obligation(due_date=date(2024, 11, 18)), NOW)
        assert scanned.days_until_due == -2
        assert scanned.is_overdue

    def test_due_today_is_zero_not_overdue(self, scanner):
        scanned = scanner.evaluate(make_obligation(due_date=date(2024, 11, 20)), NOW)
        assert scanned.days_until_due == 0
        assert not scanned.is_overdue

    def test_tomorrow_is_one(self, scanner):
        scanned = scanner.evaluate(make_obligation(due_date=date(2024, 11, 21)), NOW)
        assert scanned.days_until_due == 1

    def test_at_exact_midnight(self, scanner):
        midnight = datetime(2024, 11, 20, 0, 0, tzinfo=timezone.utc)
        scanned = scanner.evaluate(make_obligation(due_date=date(2024, 11, 22)), midnight)
        assert scanned.days_until_due == 2

    def test_engine_timezone_shifts_the_day(self):
        # 20:00 UTC is already the 21st in Kolkata
        scanner = DeadlineScanner(tz=ZoneInfo("Asia/Kolkata"))
        now = datetime(2024, 11, 20, 20, 0, tzinfo=timezone.utc)
        scanned = scanner.evaluate(make_obligation(due_date=date(2024, 11, 21)), now)
        assert scanned.days_until_due == 0

    def test_string_due_date_is_accepted(self, scanner):
        scanned = scanner.evaluate(make_obligation(due_date="2024-11-25"), NOW)
        assert scanned.due_date == date(2024, 11, 25)
        assert scanned.days_until_due == 5


class TestReturnSeverity:
    """Returns: critical <= 3 days, warning <= 7, info beyond."""

    @pytest.mark.parametrize(
        "due, expected",
        [
            (date(2024, 11, 10), Severity.CRITICAL),
            (date(2024, 11, 20), Severity.CRITICAL),
            (date(2024, 11, 23), Severity.CRITICAL),
            (date(2024, 11, 24), Severity.WARNING),
            (date(2024, 11, 27), Severity.WARNING),
            (date(2024, 11, 28), Severity.INFO),
            (date(2025, 1, 20), Severity.INFO),
        ],
    )
    def test_bands(self, scanner, due, expected):
        assert scanner.evaluate(make_obligation(due_date=due), NOW).severity == expected


class TestNoticeSeverity:
    """Notices: critical when due today or overdue, warning <= 5, nothing beyond."""

    def test_overdue_notice_is_critical(self, scanner):
        obligation = make_obligation(ObligationType.NOTICE_REPLY, due_date=date(2024, 11, 19))
        assert scanner.evaluate(obligation, NOW).severity == Severity.CRITICAL

    def test_notice_due_today_is_critical(self, scanner):
        obligation = make_obligation(ObligationType.NOTICE_REPLY, due_date=date(2024, 11, 20))
        assert scanner.evaluate(obligation, NOW).severity == Severity.CRITICAL

    def test_notice_within_five_days_is_warning(self, scanner):
        obligation = make_obligation(ObligationType.NOTICE_REPLY, due_date=date(2024, 11, 25))
        assert scanner.evaluate(obligation, NOW).severity == Severity.WARNING

    def test_notice_beyond_warning_window_is_silent(self, scanner):
        obligation = make_obligation(ObligationType.NOTICE_REPLY, due_date=date(2024, 11, 26))
        assert scanner.evaluate(obligation, NOW) is None


class TestInvoiceSeverity:
    """Invoices: critical when due today or overdue, warning <= 3, nothing beyond."""

    def test_overdue_invoice_is_critical(self, scanner):
        obligation = make_obligation(
            ObligationType.INVOICE_PAYMENT, due_date=date(2024, 11, 1), amount=Decimal("1500.00")
        )
        assert scanner.evaluate(obligation, NOW).severity == Severity.CRITICAL

    def test_invoice_within_three_days_is_warning(self, scanner):
        obligation = make_obligation(ObligationType.INVOICE_PAYMENT, due_date=date(2024, 11, 23))
        assert scanner.evaluate(obligation, NOW).severity == Severity.WARNING

    def test_invoice_beyond_warning_window_is_silent(self, scanner):
        obligation = make_obligation(ObligationType.INVOICE_PAYMENT, due_date=date(2024, 11, 24))
        assert scanner.evaluate(obligation, NOW) is None


class TestCompletedObligations:
    """Completed work never alerts, whatever the due date."""

    @pytest.mark.parametrize(
        "obligation_type, status",
        [
            (ObligationType.RETURN_FILING, ReturnStatus.FILED),
            (ObligationType.RETURN_FILING, ReturnStatus.PROCESSED),
            (ObligationType.NOTICE_REPLY, NoticeStatus.RESOLVED),
            (ObligationType.NOTICE_REPLY, NoticeStatus.REPLIED),
            (ObligationType.INVOICE_PAYMENT, InvoiceStatus.PAID),
            (ObligationType.INVOICE_PAYMENT, InvoiceStatus.CANCELLED),
        ],
    )
    def test_completed_is_skipped(self, scanner, obligation_type, status):
        obligation = make_obligation(obligation_type, due_date=date(2024, 1, 1), status=status)
        assert not obligation.is_outstanding
        assert scanner.evaluate(obligation, NOW) is None

    def test_overdue_status_is_outstanding(self, scanner):
        obligation = make_obligation(status=ReturnStatus.OVERDUE)
        assert obligation.is_outstanding
        assert scanner.evaluate(obligation, NOW).severity == Severity.CRITICAL


class TestBadData:

    def test_malformed_due_date_raises(self, scanner):
        with pytest.raises(ObligationDataError):
            scanner.evaluate(make_obligation(due_date="not-a-date"), NOW)

    def test_missing_due_date_raises(self, scanner):
        with pytest.raises(ObligationDataError):
            scanner.evaluate(make_obligation(due_date=None), NOW)

    def test_missing_recipient_raises(self, scanner):
        with pytest.raises(ObligationDataError):
            scanner.evaluate(make_obligation(recipient_id=None), NOW)

    def test_scan_skips_bad_items_and_continues(self, scanner):
        good_before = make_obligation(due_date=date(2024, 11, 18))
        bad = make_obligation(due_date="31/11/2024")
        good_after = make_obligation(due_date=date(2024, 11, 25))

        batch = scanner.scan([good_before, bad, good_after], NOW)

        assert [s.obligation.id for s in batch.items] == [good_before.id, good_after.id]
        assert batch.skipped == [bad.id]


class TestWindows:

    def test_severity_maps_to_notification_type(self):
        assert Severity.CRITICAL.notification_type == NotificationType.ERROR
        assert Severity.WARNING.notification_type == NotificationType.WARNING
        assert Severity.INFO.notification_type == NotificationType.INFO

    def test_custom_window(self):
        window = DeadlineWindow(critical_days=1, warning_days=2)
        assert window.classify(1) == Severity.CRITICAL
        assert window.classify(2) == Severity.WARNING
        assert window.classify(3) is None

    def test_horizon_for_info_type_is_unbounded(self, scanner):
        assert scanner.horizon(ObligationType.RETURN_FILING, NOW) is None

    def test_horizon_for_notices(self, scanner):
        assert scanner.horizon(ObligationType.NOTICE_REPLY, NOW) == date(2024, 11, 25)

    def test_horizon_for_invoices(self, scanner):
        assert scanner.horizon(ObligationType.INVOICE_PAYMENT, NOW) == date(2024, 11, 23)
