"""
TaxDesk - Services Package

Deadline engine, notifications and report aggregation.
"""

from taxdesk.services.compliance_service import ComplianceService
from taxdesk.services.deadline_alert_service import DeadlineAlertService, ScanResult
from taxdesk.services.deadline_scanner import DeadlineScanner, ObligationType, Severity
from taxdesk.services.entity_store import EntityStore
from taxdesk.services.notification_service import NotificationService
from taxdesk.services.reports_service import ReportsService

__all__ = [
    "ComplianceService",
    "DeadlineAlertService",
    "ScanResult",
    "DeadlineScanner",
    "ObligationType",
    "Severity",
    "EntityStore",
    "NotificationService",
    "ReportsService",
]
