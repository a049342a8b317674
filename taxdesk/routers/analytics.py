"""
TaxDesk - Analytics Router

Dashboard metrics: monthly compliance trend, rolling revenue, top clients
and the practice summary.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taxdesk.database import get_async_session
from taxdesk.schemas.reports import ComplianceMetric, MonthlyRevenue, PracticeSummary, TopClient
from taxdesk.services.compliance_service import ComplianceService
from taxdesk.services.reports_service import ReportsService
from taxdesk.utils.dates import utcnow


router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get(
    "/compliance-metrics",
    response_model=List[ComplianceMetric],
    response_model_by_alias=True,
    summary="Monthly filing compliance, oldest month first",
)
async def get_compliance_metrics(
    months: int = Query(12, description="Number of months including the current one"),
    db: AsyncSession = Depends(get_async_session),
):
    return await ComplianceService(db).compute_monthly_metrics(months, now=utcnow())


@router.get(
    "/revenue",
    response_model=List[MonthlyRevenue],
    response_model_by_alias=True,
    summary="Invoiced revenue per month",
)
async def get_revenue(
    months: int = Query(12),
    db: AsyncSession = Depends(get_async_session),
):
    return await ReportsService(db).revenue_data(months, now=utcnow())


@router.get(
    "/top-clients",
    response_model=List[TopClient],
    response_model_by_alias=True,
    summary="Clients ranked by invoiced revenue",
)
async def get_top_clients(
    limit: int = Query(10),
    db: AsyncSession = Depends(get_async_session),
):
    return await ReportsService(db).top_clients(limit)


@router.get(
    "/summary",
    response_model=PracticeSummary,
    response_model_by_alias=True,
    summary="Practice dashboard summary",
)
async def get_summary(db: AsyncSession = Depends(get_async_session)):
    return await ReportsService(db).practice_summary(now=utcnow())
