"""Unit tests for fastpay_sdk.dashboard."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from fastpay_sdk import Dashboard
from fastpay_sdk.config import FastPayConfig
from fastpay_sdk.models import TransferDraft
from fastpay_sdk.storage import StateStorage
from fastpay_sdk.types import WorkflowState

ORGS = [
    {"id": "org-a", "libelle": "A", "web_site": "https://a.test"},
    {"id": "org-b", "libelle": "B", "web_site": "https://b.test"},
]


@pytest.fixture
def dash(api: AsyncMock, config: FastPayConfig, storage: StateStorage) -> Dashboard:
    api.login.return_value = {
        "user": {"id": "u-1", "email": "a@shop.test"},
        "auth_token": "tok",
    }
    api.get_my_organisations.return_value = ORGS
    api.list_payments.return_value = [{"id": "p1"}]
    api.list_transfers.return_value = [{"id": "t1"}]
    api.list_organisation_beneficiaries.return_value = []
    api.list_grouped_payments.return_value = []
    api.list_mobile_services.return_value = [{"id": "s1", "name": "Wave"}]
    api.list_api_keys.return_value = []
    api.list_countries.return_value = [{"id": "ci", "libelle": "Côte d'Ivoire"}]
    api.get_analytics_overview.return_value = {"totalTransactions": 4, "totalAmount": 9000}
    api.get_analytics_graph.return_value = {"data": [{"day": "mon", "amount": 10}]}
    api.get_top_beneficiaries.return_value = {"beneficiaries": []}
    return Dashboard(config, client=api, storage=storage)


class TestDashboard:
    def test_login_loads_organisations(self, dash: Dashboard) -> None:
        asyncio.run(dash.login("a@shop.test", "pw"))
        assert dash.organisation_id == "org-a"

    def test_load_scopes_to_active_organisation(
        self, dash: Dashboard, api: AsyncMock
    ) -> None:
        asyncio.run(dash.login("a@shop.test", "pw"))
        asyncio.run(dash.load())

        api.list_payments.assert_awaited_with(1, 10, "org-a")
        api.list_transfers.assert_awaited_with(1, 10, "org-a")
        api.list_api_keys.assert_awaited_with("org-a")
        assert [p.id for p in dash.payments.items] == ["p1"]

    def test_load_fetches_catalog_and_analytics(self, dash: Dashboard) -> None:
        asyncio.run(dash.login("a@shop.test", "pw"))
        asyncio.run(dash.load())

        assert [c.id for c in dash.countries.items] == ["ci"]
        assert dash.analytics.overview.total_transactions == 4
        assert len(dash.analytics.graph.data) == 1

    def test_reload_after_switch_refills_countries(
        self, dash: Dashboard, api: AsyncMock
    ) -> None:
        asyncio.run(dash.login("a@shop.test", "pw"))
        asyncio.run(dash.load())
        dash.switch_organisation("org-b")
        assert dash.countries.items == []
        assert dash.analytics.overview is None

        asyncio.run(dash.load())

        assert [c.id for c in dash.countries.items] == ["ci"]
        assert api.list_countries.await_count == 2

    def test_switch_clears_stores_and_draft(self, dash: Dashboard) -> None:
        asyncio.run(dash.login("a@shop.test", "pw"))
        asyncio.run(dash.load())
        asyncio.run(
            dash.transfer.submit_draft(
                TransferDraft(
                    amount=100,
                    service_code="WAVE_CI",
                    recipient_name="Awa",
                    recipient_phone="0700",
                ),
                organisation_id=dash.organisation_id,
            )
        )

        dash.switch_organisation("org-b")

        assert dash.payments.items == []
        assert dash.transfers.items == []
        assert dash.mobile_services.items == []
        assert dash.transfer.state == WorkflowState.COMPOSE
        assert dash.transfer.draft is None
        assert dash.organisation_id == "org-b"

    def test_start_restores_session(
        self, api: AsyncMock, config: FastPayConfig, storage: StateStorage
    ) -> None:
        api.login.return_value = {"user": {"id": "u-1"}, "auth_token": "tok"}
        api.get_my_organisations.return_value = ORGS
        api.get_current_user.return_value = {"id": "u-1"}
        first = Dashboard(config, client=api, storage=storage)
        asyncio.run(first.login("a@shop.test", "pw"))
        first.switch_organisation("org-b")

        second = Dashboard(config, client=api, storage=storage)
        asyncio.run(second.start())

        assert second.session.token == "tok"
        assert second.organisation_id == "org-b"

    def test_start_without_session(self, dash: Dashboard, api: AsyncMock) -> None:
        asyncio.run(dash.start())
        api.get_my_organisations.assert_not_awaited()

    def test_logout(self, dash: Dashboard) -> None:
        asyncio.run(dash.login("a@shop.test", "pw"))
        asyncio.run(dash.load())

        asyncio.run(dash.logout())

        assert dash.session.token is None
        assert dash.organisation_id is None
        assert dash.payments.items == []

    def test_default_client_uses_session_token(self, config: FastPayConfig) -> None:
        dash = Dashboard(config)
        dash.session.token = "tok-xyz"

        assert dash.client._headers() == {"Authorization": "Bearer tok-xyz"}
        asyncio.run(dash.close())
