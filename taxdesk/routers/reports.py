"""
TaxDesk - Reports Router

Period reports over the whole practice:
- compliance-status: per-client compliance scores
- revenue-trend: monthly invoicing for a year
- returns-filing, notice-management, payment-analysis, client-summary
- per-client report
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.database import get_async_session
from taxdesk.schemas.reports import ClientReport
from taxdesk.services.reports_service import ReportsService
from taxdesk.utils.dates import local_today, utcnow


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get(
    "",
    summary="Generate a period report",
    description="Report types: client-summary, compliance-status, notice-management, "
                "payment-analysis, returns-filing, revenue-trend.",
)
async def get_report(
    report_type: str = Query(..., alias="type", description="Report type"),
    year: Optional[int] = Query(None, description="Calendar year (defaults to the current year)"),
    month: Optional[int] = Query(None, description="Month 1-12; omit for the whole year"),
    db: AsyncSession = Depends(get_async_session),
):
    now = utcnow()
    if year is None:
        year = local_today(now).year

    report = await ReportsService(db).generate_report(report_type, year, month, now=now)
    return report.model_dump(mode="json", by_alias=True)


@router.get(
    "/clients/{client_id}",
    response_model=ClientReport,
    response_model_by_alias=True,
    summary="Full report for one client",
)
async def get_client_report(
    client_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
):
    return await ReportsService(db).client_report(client_id)
