"""
TaxDesk - Deadline Alert Service

One scan tick: for each obligation type in turn (returns, notices,
invoices) load outstanding items, classify them, drop alerts already sent
today and write the rest as notifications.

Running the scan twice on the same day creates nothing new the second time.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.services.alert_deduplicator import AlertDeduplicator, AlertKey
from taxdesk.services.deadline_scanner import DeadlineScanner, ObligationType
from taxdesk.services.entity_store import EntityStore
from taxdesk.services.notification_service import NotificationService
from taxdesk.utils.dates import as_utc
from taxdesk.utils.error_handling import StoreUnavailableException

logger = logging.getLogger(__name__)

SCAN_ORDER = (
    ObligationType.RETURN_FILING,
    ObligationType.NOTICE_REPLY,
    ObligationType.INVOICE_PAYMENT,
)


@dataclass
class ScanResult:
    """Outcome of one scan_and_notify call."""
    created: int = 0
    suppressed: int = 0
    skipped: int = 0
    failed: int = 0
    by_type: Dict[str, int] = field(default_factory=lambda: {t.value: 0 for t in SCAN_ORDER})

    def to_dict(self) -> dict:
        return {
            "created": self.created,
            "suppressed": self.suppressed,
            "skipped": self.skipped,
            "failed": self.failed,
            "by_type": dict(self.by_type),
        }


class DeadlineAlertService:
    """Runs the deadline scan and emits notifications."""

    def __init__(self, db: AsyncSession, scanner: Optional[DeadlineScanner] = None):
        self.db = db
        self.store = EntityStore(db)
        self.scanner = scanner or DeadlineScanner()
        self.deduplicator = AlertDeduplicator(self.store, tz=self.scanner.tz)
        self.notifications = NotificationService(db)

    async def scan_and_notify(self, now: datetime) -> ScanResult:
        """
        Evaluate all outstanding obligations against ``now``.

        Raises:
            StoreUnavailableException: the store could not be reached. Alerts
                written before the outage stay written.
        """
        now = as_utc(now)
        result = ScanResult()

        for obligation_type in SCAN_ORDER:
            horizon = self.scanner.horizon(obligation_type, now)
            obligations = await self.store.find_outstanding(obligation_type, due_on_or_before=horizon)
            batch = self.scanner.scan(obligations, now)
            result.skipped += len(batch.skipped)

            for scanned in batch.items:
                key = AlertKey.for_obligation(scanned.obligation)
                try:
                    if await self.deduplicator.is_duplicate(scanned.obligation.recipient_id, key, now):
                        result.suppressed += 1
                        continue
                    notification = await self.notifications.emit_deadline_alert(scanned, key, now)
                except StoreUnavailableException:
                    raise
                except Exception as e:
                    logger.error(f"Error processing {obligation_type.value} {scanned.obligation.id}: {e}")
                    result.failed += 1
                    continue

                if notification is None:
                    result.failed += 1
                    continue
                result.created += 1
                result.by_type[obligation_type.value] += 1

        logger.info(
            f"Deadline scan at {now.isoformat()}: {result.created} created, "
            f"{result.suppressed} suppressed, {result.skipped} skipped, {result.failed} failed"
        )
        return result
