"""Unit tests for the analytics and admin user stores."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from fastpay_client import ApiError

from fastpay_sdk.exceptions import InvalidResponseError
from fastpay_sdk.registry import StoreRegistry
from fastpay_sdk.stores import AnalyticsStore, UsersStore

OVERVIEW = {
    "totalTransactions": 12,
    "totalAmount": 150000.5,
    "successfulTransactions": 10,
    "failedTransactions": 2,
    "commissions": 1500,
}


@pytest.fixture
def analytics(api: AsyncMock) -> AnalyticsStore:
    api.get_analytics_overview.return_value = OVERVIEW
    api.get_analytics_graph.return_value = {"data": [{"date": "2026-10-01", "amount": 500}]}
    api.get_top_beneficiaries.return_value = {
        "beneficiaries": [{"name": "Awa", "total": 9000}]
    }
    return AnalyticsStore(api)


class TestAnalytics:
    def test_overview(self, analytics: AnalyticsStore) -> None:
        overview = asyncio.run(analytics.fetch_overview())

        assert overview is analytics.overview
        assert overview.total_transactions == 12
        assert overview.total_amount == Decimal("150000.5")
        assert overview.failed_transactions == 2
        assert analytics.is_loading is False

    def test_fetch_loads_all_three(self, analytics: AnalyticsStore) -> None:
        asyncio.run(analytics.fetch())

        assert analytics.overview.commissions == Decimal(1500)
        assert analytics.graph.data == [{"date": "2026-10-01", "amount": 500}]
        assert analytics.top_beneficiaries.beneficiaries[0]["name"] == "Awa"

    def test_bare_list_payloads(self, analytics: AnalyticsStore, api: AsyncMock) -> None:
        api.get_analytics_graph.return_value = [{"amount": 1}]
        api.get_top_beneficiaries.return_value = [{"name": "Awa"}]

        asyncio.run(analytics.fetch())

        assert analytics.graph.data == [{"amount": 1}]
        assert analytics.top_beneficiaries.beneficiaries == [{"name": "Awa"}]

    def test_failure_keeps_previous_figures(
        self, analytics: AnalyticsStore, api: AsyncMock
    ) -> None:
        asyncio.run(analytics.fetch_overview())
        api.get_analytics_overview.side_effect = ApiError(500, "BOOM", "down")

        assert asyncio.run(analytics.fetch_overview()) is None

        assert analytics.overview.total_transactions == 12
        assert isinstance(analytics.last_error, ApiError)
        assert analytics.is_loading is False

        analytics.clear_error()
        assert analytics.last_error is None

    def test_malformed_payload(self, analytics: AnalyticsStore, api: AsyncMock) -> None:
        api.get_analytics_overview.return_value = {"totalTransactions": "many"}

        asyncio.run(analytics.fetch_overview())

        assert analytics.overview is None
        assert isinstance(analytics.last_error, InvalidResponseError)

    def test_reset_drops_in_flight_response(self, api: AsyncMock) -> None:
        analytics = AnalyticsStore(api)

        async def run() -> None:
            gate = asyncio.Event()

            async def overview():
                await gate.wait()
                return OVERVIEW

            api.get_analytics_overview.side_effect = overview
            task = asyncio.create_task(analytics.fetch_overview())
            await asyncio.sleep(0)
            assert analytics.is_loading is True

            analytics.reset()
            gate.set()
            await task

        asyncio.run(run())

        assert analytics.overview is None
        assert analytics.is_loading is False

    def test_reset_by_registry(
        self, analytics: AnalyticsStore, registry: StoreRegistry
    ) -> None:
        asyncio.run(analytics.fetch())
        registry.register(analytics)

        registry.reset_all()

        assert analytics.overview is None
        assert analytics.graph is None
        assert analytics.top_beneficiaries is None


class TestUsers:
    def test_get_sets_selected(self, api: AsyncMock) -> None:
        api.get_user.return_value = {"id": "u-7", "fullname": "Awa Koné", "role": "MERCHANT"}
        users = UsersStore(api)

        user = asyncio.run(users.get("u-7"))

        assert user.fullname == "Awa Koné"
        assert users.selected is user
        api.get_user.assert_awaited_once_with("u-7")

    def test_get_failure_clears_selected(self, api: AsyncMock) -> None:
        api.get_user.side_effect = ApiError(404, "NOT_FOUND", "missing")
        users = UsersStore(api)

        assert asyncio.run(users.get("u-7")) is None
        assert users.selected is None

    def test_delete(self, api: AsyncMock) -> None:
        api.get_user.return_value = {"id": "u-7"}
        api.delete_user.return_value = {"message": "deleted"}
        users = UsersStore(api)
        asyncio.run(users.get("u-7"))

        result = asyncio.run(users.delete("u-7"))

        assert result == {"message": "deleted"}
        assert users.selected is None

    def test_delete_failure_raises(self, api: AsyncMock) -> None:
        api.delete_user.side_effect = ApiError(403, "FORBIDDEN", "admins only")
        users = UsersStore(api)

        with pytest.raises(ApiError):
            asyncio.run(users.delete("u-7"))

        assert isinstance(users.last_error, ApiError)
