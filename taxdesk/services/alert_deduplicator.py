"""
TaxDesk - Alert Deduplicator

Keeps deadline alerts to at most one per obligation, per recipient, per
calendar day. The notifications table is the only memory: an alert counts as
sent when a notification created since local midnight has a title ending
with the alert key's token.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from taxdesk.services.deadline_scanner import Obligation, ObligationType
from taxdesk.services.entity_store import EntityStore
from taxdesk.utils.dates import engine_tz, start_of_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertKey:
    """Stable identity of an alert across daily scans."""
    obligation_type: ObligationType
    reference: str
    client_label: str

    @classmethod
    def for_obligation(cls, obligation: Obligation) -> "AlertKey":
        return cls(
            obligation_type=obligation.obligation_type,
            reference=obligation.reference,
            client_label=obligation.client_name or str(obligation.client_id),
        )

    @property
    def token(self) -> str:
        """Tail of every alert title for this key, e.g. "GSTR-3B - Oct 2024 for Acme (filing)"."""
        return f"{self.reference} for {self.client_label} ({self.obligation_type.action})"

    def matches(self, title: Optional[str]) -> bool:
        # Anchored at the end so "Acme" never matches a title for "Acme Traders"
        return bool(title) and title.endswith(f": {self.token}")

    def to_dict(self) -> dict:
        return {
            "obligation_type": self.obligation_type.value,
            "reference": self.reference,
            "client": self.client_label,
        }


class AlertDeduplicator:
    """Answers "was this alert already sent today?" against the store."""

    def __init__(self, store: EntityStore, tz: Optional[ZoneInfo] = None):
        self.store = store
        self.tz = tz or engine_tz()

    async def is_duplicate(self, recipient_id: Any, key: AlertKey, now: datetime) -> bool:
        since = start_of_day(now, self.tz)
        existing = await self.store.find_notifications_since(
            recipient_id,
            since,
            title_contains=key.token,
        )
        # LIKE can be case-insensitive; confirm with an exact substring check
        duplicate = any(key.matches(n.title) for n in existing)
        if duplicate:
            logger.debug(f"Alert already sent today: {key.token} -> {recipient_id}")
        return duplicate
