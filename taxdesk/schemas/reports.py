"""
TaxDesk - Report Schemas

Pydantic schemas for the compliance, revenue and practice reports.

All report models serialise with camelCase keys (``totalClients``,
``averageComplianceScore``, ``returnsFiled`` ...) and still accept the
snake_case field names when built in Python.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReportModel(BaseModel):
    """Base for report payloads (camelCase on the wire)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ===========================================
# COMPLIANCE
# ===========================================

class ClientComplianceRow(ReportModel):
    """Compliance standing of one client inside the reporting window."""
    client_id: UUID
    business_name: str
    gstin: Optional[str] = None
    gst_status: str
    total_returns: int = 0
    filed_returns: int = 0
    overdue_returns: int = 0
    total_notices: int = 0
    pending_notices: int = 0
    compliance_score: int = Field(..., ge=0, le=100)


class ComplianceReport(ReportModel):
    """
    Practice-wide compliance status.

    Buckets: fully compliant (score 100), partially compliant (70-99),
    non-compliant (below 70).
    """
    total_clients: int = 0
    fully_compliant: int = 0
    partially_compliant: int = 0
    non_compliant: int = 0
    average_compliance_score: float = 0.0
    total_overdue_returns: int = 0
    total_pending_notices: int = 0
    client_compliance: List[ClientComplianceRow] = Field(default_factory=list)
    period: str


class ComplianceMetric(ReportModel):
    """Filing performance for one calendar month."""
    month: str = Field(..., description="Label, e.g. 'Nov 2024'")
    year: int
    month_number: int = Field(..., ge=1, le=12)
    returns_filed: int = 0
    returns_due: int = 0
    compliance_rate: int = Field(0, ge=0, le=100)
    late_filings: int = 0


# ===========================================
# REVENUE
# ===========================================

class RevenueData(ReportModel):
    """Invoice totals for one month of a revenue trend."""
    month: str
    invoices: int = 0
    total_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    pending_amount: Decimal = Decimal("0")
    clients: int = 0


class RevenueTrend(ReportModel):
    """Twelve months of invoicing for a calendar year."""
    year: str
    yearly_total: Decimal = Decimal("0")
    yearly_paid: Decimal = Decimal("0")
    yearly_pending: Decimal = Decimal("0")
    total_invoices: int = 0
    paid_invoices: int = 0
    pending_invoices: int = 0
    monthly_data: List[RevenueData] = Field(default_factory=list)


class MonthlyRevenue(ReportModel):
    """Rolling monthly revenue for the analytics dashboard."""
    month: str
    revenue: Decimal = Decimal("0")
    invoices: int = 0
    clients: int = 0


class TopClient(ReportModel):
    id: UUID
    business_name: str
    pan: Optional[str] = None
    revenue: Decimal = Decimal("0")
    returns: int = 0
    registrations: int = 0


# ===========================================
# PRACTICE SUMMARY
# ===========================================

class ClientSummary(ReportModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    new_this_month: int = 0


class RegistrationSummary(ReportModel):
    total: int = 0
    draft: int = 0
    submitted: int = 0
    approved: int = 0
    rejected: int = 0
    pending_approval: int = 0


class ReturnSummary(ReportModel):
    total: int = 0
    filed: int = 0
    pending: int = 0
    overdue: int = 0
    late_filed: int = 0


class FinancialSummary(ReportModel):
    total_revenue: Decimal = Decimal("0")
    pending_payments: Decimal = Decimal("0")
    overdue_payments: Decimal = Decimal("0")
    this_month_revenue: Decimal = Decimal("0")
    last_month_revenue: Decimal = Decimal("0")


class NoticeSummary(ReportModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    replied: int = 0
    resolved: int = 0
    overdue: int = 0


class PracticeSummary(ReportModel):
    """Dashboard headline numbers across every client."""
    clients: ClientSummary
    registrations: RegistrationSummary
    returns: ReturnSummary
    financial: FinancialSummary
    notices: NoticeSummary
    generated_at: datetime


# ===========================================
# PERIOD REPORTS
# ===========================================

class ClientRow(ReportModel):
    id: UUID
    business_name: str
    gstin: Optional[str] = None
    pan: Optional[str] = None
    gst_status: str
    returns: int = 0
    registrations: int = 0
    notices: int = 0


class ClientSummaryReport(ReportModel):
    total_clients: int = 0
    active_gst: int = 0
    inactive_gst: int = 0
    new_registrations: int = 0
    total_returns_filed: int = 0
    overdue_returns: int = 0
    clients: List[ClientRow] = Field(default_factory=list)
    period: str


class ReturnRow(ReportModel):
    id: UUID
    client_id: UUID
    business_name: Optional[str] = None
    return_type: str
    tax_period: str
    due_date: date
    status: str
    filed_at: Optional[datetime] = None
    paid_amount: Decimal = Decimal("0")


class ReturnsFilingReport(ReportModel):
    total_returns: int = 0
    filed: int = 0
    overdue: int = 0
    draft: int = 0
    processed: int = 0
    rejected: int = 0
    return_type_breakdown: Dict[str, int] = Field(default_factory=dict)
    total_tax_amount: Decimal = Decimal("0")
    returns: List[ReturnRow] = Field(default_factory=list)
    period: str


class NoticeRow(ReportModel):
    id: UUID
    client_id: UUID
    business_name: Optional[str] = None
    notice_number: str
    notice_type: str
    subject: str
    received_on: date
    due_date: date
    status: str


class NoticeManagementReport(ReportModel):
    total_notices: int = 0
    received: int = 0
    in_progress: int = 0
    replied: int = 0
    resolved: int = 0
    overdue: int = 0
    notice_type_breakdown: Dict[str, int] = Field(default_factory=dict)
    notices: List[NoticeRow] = Field(default_factory=list)
    period: str


class PaymentRow(ReportModel):
    id: UUID
    client_id: UUID
    business_name: Optional[str] = None
    return_reference: Optional[str] = None
    payment_type: str
    amount: Decimal
    status: str
    paid_at: Optional[datetime] = None


class PaymentAnalysisReport(ReportModel):
    total_payments: int = 0
    paid: int = 0
    pending: int = 0
    failed: int = 0
    refunded: int = 0
    total_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    pending_amount: Decimal = Decimal("0")
    payment_type_breakdown: Dict[str, int] = Field(default_factory=dict)
    payments: List[PaymentRow] = Field(default_factory=list)
    period: str


# ===========================================
# PER-CLIENT REPORT
# ===========================================

class ClientReportSummary(ReportModel):
    total_registrations: int = 0
    approved_registrations: int = 0
    total_returns: int = 0
    filed_returns: int = 0
    total_payments: int = 0
    paid_payments: int = 0
    total_notices: int = 0
    resolved_notices: int = 0
    total_invoices: int = 0
    paid_invoices: Decimal = Decimal("0")
    outstanding_invoices: Decimal = Decimal("0")


class ClientReport(ReportModel):
    client: ClientRow
    returns: List[ReturnRow] = Field(default_factory=list)
    notices: List[NoticeRow] = Field(default_factory=list)
    payments: List[PaymentRow] = Field(default_factory=list)
    summary: ClientReportSummary
