"""
TaxDesk - API Integration Tests

Integration tests for REST API endpoints.
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from taxdesk.models.gst_return import ReturnStatus
from taxdesk.utils.dates import local_today, utcnow


def today() -> date:
    return local_today(utcnow())


class TestHealthEndpoint:
    """Test health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"

    @pytest.mark.asyncio
    async def test_api_root(self, client: AsyncClient):
        response = await client.get("/api/v1")

        assert response.status_code == 200
        assert response.json()["endpoints"]["reports"] == "/api/v1/reports"


class TestNotificationsAPI:
    """Deadline scan and inbox endpoints."""

    @pytest.mark.asyncio
    async def test_check_creates_alerts_once(self, client: AsyncClient, seed, practitioner, acme):
        await seed.gst_return(acme, due_date=today() - timedelta(days=2))

        first = await client.post("/api/v1/notifications/check")
        second = await client.post("/api/v1/notifications/check")

        assert first.status_code == 200
        assert first.json()["created"] == 1
        assert first.json()["by_type"]["return_filing"] == 1
        assert second.json()["created"] == 0
        assert second.json()["suppressed"] == 1

        response = await client.get("/api/v1/notifications", params={"user_id": str(practitioner.id)})
        data = response.json()
        assert data["total"] == 1
        assert data["unread_count"] == 1
        [alert] = data["notifications"]
        assert alert["notification_type"] == "error"
        assert "GSTR-3B - Oct 2024 for Acme Traders" in alert["title"]
        assert alert["client_id"] == str(acme.id)

    @pytest.mark.asyncio
    async def test_check_ignores_filed_returns(self, client: AsyncClient, seed, acme):
        await seed.gst_return(acme, due_date=today() - timedelta(days=2), status=ReturnStatus.FILED)

        response = await client.post("/api/v1/notifications/check")

        assert response.json()["created"] == 0

    @pytest.mark.asyncio
    async def test_filter_by_type(self, client: AsyncClient, seed, practitioner, acme):
        await seed.gst_return(acme, due_date=today() - timedelta(days=2), period="Oct 2024")
        await seed.gst_return(acme, due_date=today() + timedelta(days=20), period="Nov 2024")
        await client.post("/api/v1/notifications/check")

        response = await client.get(
            "/api/v1/notifications",
            params={"user_id": str(practitioner.id), "notification_type": "info"},
        )

        data = response.json()
        assert data["total"] == 1
        assert data["notifications"][0]["title"].startswith("Upcoming:")

    @pytest.mark.asyncio
    async def test_unread_count_and_mark_read(self, client: AsyncClient, seed, practitioner, acme):
        await seed.gst_return(acme, due_date=today() - timedelta(days=2))
        await client.post("/api/v1/notifications/check")
        listing = await client.get("/api/v1/notifications", params={"user_id": str(practitioner.id)})
        notification_id = listing.json()["notifications"][0]["id"]

        response = await client.post(
            "/api/v1/notifications/mark-read",
            json={"user_id": str(practitioner.id), "notification_ids": [notification_id]},
        )
        assert response.status_code == 200
        assert response.json() == {"updated": 1}

        count = await client.get("/api/v1/notifications/unread-count", params={"user_id": str(practitioner.id)})
        assert count.json() == {"unread_count": 0}

    @pytest.mark.asyncio
    async def test_mark_all_read(self, client: AsyncClient, seed, practitioner, acme):
        await seed.gst_return(acme, due_date=today() - timedelta(days=2), period="Oct 2024")
        await seed.gst_return(acme, due_date=today() + timedelta(days=1), period="Nov 2024")
        await client.post("/api/v1/notifications/check")

        response = await client.post(
            "/api/v1/notifications/mark-read",
            json={"user_id": str(practitioner.id), "mark_all": True},
        )

        assert response.json() == {"updated": 2}

    @pytest.mark.asyncio
    async def test_mark_read_needs_a_target(self, client: AsyncClient, practitioner):
        response = await client.post(
            "/api/v1/notifications/mark-read",
            json={"user_id": str(practitioner.id)},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_list_requires_valid_user_id(self, client: AsyncClient):
        response = await client.get("/api/v1/notifications", params={"user_id": "not-a-uuid"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_store_outage_is_503(self, client: AsyncClient, db_session, monkeypatch):
        async def unreachable(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("could not connect to server"))

        monkeypatch.setattr(db_session, "execute", unreachable)

        response = await client.post("/api/v1/notifications/check")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "CONNECTION_ERROR"


class TestReportsAPI:
    """Period reports."""

    @pytest.mark.asyncio
    async def test_compliance_report_uses_camel_case(self, client: AsyncClient, seed, acme):
        await seed.gst_return(acme, due_date=date(2024, 11, 18))

        response = await client.get(
            "/api/v1/reports", params={"type": "compliance-status", "year": 2024, "month": 11}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["period"] == "11-2024"
        assert data["totalClients"] == 1
        assert data["totalOverdueReturns"] == 1
        assert data["averageComplianceScore"] == 90.0
        row = data["clientCompliance"][0]
        assert row["businessName"] == "Acme Traders"
        assert row["complianceScore"] == 90

    @pytest.mark.asyncio
    async def test_revenue_trend_amounts(self, client: AsyncClient, seed, acme):
        await seed.invoice(
            acme, due_date=date(2024, 3, 31), amount=Decimal("1250.00"), issue_date=date(2024, 3, 2)
        )

        response = await client.get("/api/v1/reports", params={"type": "revenue-trend", "year": 2024})

        data = response.json()
        assert data["year"] == "2024"
        assert len(data["monthlyData"]) == 12
        assert Decimal(data["monthlyData"][2]["totalAmount"]) == Decimal("1250.00")
        assert Decimal(data["yearlyPending"]) == Decimal("1250.00")

    @pytest.mark.asyncio
    async def test_unknown_report_type(self, client: AsyncClient):
        response = await client.get("/api/v1/reports", params={"type": "gst-forecast", "year": 2024})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "INVALID_REPORT_TYPE"
        assert "compliance-status" in error["details"]["supported_types"]

    @pytest.mark.asyncio
    async def test_invalid_month(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/reports", params={"type": "returns-filing", "year": 2024, "month": 13}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_TAX_PERIOD"
        assert body["error"]["field"] == "month"
        assert "timestamp" in body["error"]

    @pytest.mark.asyncio
    async def test_type_is_required(self, client: AsyncClient):
        response = await client.get("/api/v1/reports")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_client_report(self, client: AsyncClient, seed, acme):
        await seed.gst_return(acme, due_date=date(2024, 11, 18))

        response = await client.get(f"/api/v1/reports/clients/{acme.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["client"]["businessName"] == "Acme Traders"
        assert data["summary"]["totalReturns"] == 1
        assert data["returns"][0]["taxPeriod"] == "Oct 2024"

    @pytest.mark.asyncio
    async def test_client_report_not_found(self, client: AsyncClient):
        response = await client.get(f"/api/v1/reports/clients/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CLIENT_NOT_FOUND"


class TestAnalyticsAPI:
    """Dashboard endpoints."""

    @pytest.mark.asyncio
    async def test_compliance_metrics(self, client: AsyncClient):
        response = await client.get("/api/v1/analytics/compliance-metrics", params={"months": 6})

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 6
        assert set(data[0]) >= {"month", "returnsFiled", "returnsDue", "complianceRate", "lateFilings"}

    @pytest.mark.asyncio
    async def test_compliance_metrics_rejects_zero_months(self, client: AsyncClient):
        response = await client.get("/api/v1/analytics/compliance-metrics", params={"months": 0})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_revenue(self, client: AsyncClient):
        response = await client.get("/api/v1/analytics/revenue", params={"months": 3})

        assert response.status_code == 200
        assert len(response.json()) == 3

    @pytest.mark.asyncio
    async def test_top_clients(self, client: AsyncClient, seed, practitioner, acme):
        zenith = await seed.client(practitioner, "Zenith Exports")
        await seed.invoice(zenith, due_date=date(2024, 11, 30), amount=Decimal("900.00"))

        response = await client.get("/api/v1/analytics/top-clients", params={"limit": 1})

        assert response.status_code == 200
        [top] = response.json()
        assert top["businessName"] == "Zenith Exports"
        assert Decimal(top["revenue"]) == Decimal("900.00")

    @pytest.mark.asyncio
    async def test_summary(self, client: AsyncClient, acme):
        response = await client.get("/api/v1/analytics/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["clients"]["total"] == 1
        assert "generatedAt" in data
        assert set(data) >= {"clients", "registrations", "returns", "financial", "notices"}
