"""
TaxDesk - Error Handling Tests

Error payloads and the translation of store outages.
"""

from datetime import datetime
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from taxdesk.utils.error_handling import (
    ClientNotFoundException,
    InvalidTaxPeriodException,
    StoreUnavailableException,
    store_errors,
)


class TestErrorPayload:

    def test_validation_error_payload(self):
        payload = InvalidTaxPeriodException(2024, 13).to_dict()

        assert payload["code"] == "INVALID_TAX_PERIOD"
        assert payload["message"] == "Invalid reporting period: 2024-13"
        assert payload["field"] == "month"
        assert payload["details"] == {"year": 2024, "month": 13}
        assert datetime.fromisoformat(payload["timestamp"]).tzinfo is not None

    def test_not_found_payload(self):
        client_id = uuid4()
        payload = ClientNotFoundException(client_id).to_dict()

        assert payload["code"] == "CLIENT_NOT_FOUND"
        assert payload["details"]["resource_id"] == str(client_id)
        assert "field" not in payload

    def test_store_unavailable_is_503(self):
        exc = StoreUnavailableException()

        assert exc.status_code == 503
        assert exc.to_dict()["code"] == "CONNECTION_ERROR"
        assert "details" not in exc.to_dict()


class TestStoreErrors:

    @pytest.mark.asyncio
    async def test_connection_error_becomes_store_unavailable(self):
        with pytest.raises(StoreUnavailableException) as exc_info:
            async with store_errors("find_clients"):
                raise OperationalError("SELECT", {}, Exception("could not connect to server"))

        assert "find_clients" in exc_info.value.message
        assert isinstance(exc_info.value.original_error, OperationalError)

    @pytest.mark.asyncio
    async def test_other_errors_pass_through(self):
        with pytest.raises(IntegrityError):
            async with store_errors("create_notification"):
                raise IntegrityError("INSERT", {}, Exception("constraint failed"))
