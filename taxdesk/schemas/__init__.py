"""
TaxDesk - Schemas Package

Pydantic schemas for request/response validation and report payloads.
"""

from taxdesk.schemas.notification import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationListResponse,
    NotificationResponse,
    ScanResultResponse,
    UnreadCountResponse,
)
from taxdesk.schemas.reports import (
    ClientComplianceRow,
    ComplianceMetric,
    ComplianceReport,
    MonthlyRevenue,
    PracticeSummary,
    ReportModel,
    RevenueData,
    RevenueTrend,
    TopClient,
)

__all__ = [
    "MarkReadRequest",
    "MarkReadResponse",
    "NotificationListResponse",
    "NotificationResponse",
    "ScanResultResponse",
    "UnreadCountResponse",
    "ClientComplianceRow",
    "ComplianceMetric",
    "ComplianceReport",
    "MonthlyRevenue",
    "PracticeSummary",
    "ReportModel",
    "RevenueData",
    "RevenueTrend",
    "TopClient",
]
