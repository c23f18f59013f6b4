"""Everything a dashboard session needs, wired together.

    async with Dashboard() as dash:
        await dash.start()
        await dash.login(email, password)
        await dash.load()
        dash.switch_organisation(other_id)
"""

import logging
from typing import Any

from fastpay_client import FastPayApiClient

from fastpay_sdk.config import FastPayConfig, get_config
from fastpay_sdk.models import User
from fastpay_sdk.organisations import OrganisationContext
from fastpay_sdk.registry import StoreRegistry
from fastpay_sdk.safeguards.audit import AuditLog
from fastpay_sdk.session import Session
from fastpay_sdk.storage import StateStorage
from fastpay_sdk.stores import (
    AnalyticsStore,
    BeneficiariesStore,
    CountriesStore,
    GroupedPaymentsStore,
    MobileServicesStore,
    PaymentsStore,
    SettingsStore,
    TransfersStore,
    UsersStore,
)
from fastpay_sdk.workflow import TransferWorkflow

log = logging.getLogger(__name__)


class Dashboard:
    def __init__(
        self,
        config: FastPayConfig | None = None,
        *,
        client: FastPayApiClient | None = None,
        storage: StateStorage | None = None,
        audit: AuditLog | None = None,
    ) -> None:
        self.config = config or get_config()
        self.storage = storage or StateStorage(self.config.state_path)
        self.client = client or FastPayApiClient(
            self.config.api_url,
            token_provider=self._token,
            timeout=self.config.timeout,
        )
        self.audit = audit or AuditLog(self.config.audit_path)
        self.registry = StoreRegistry()

        size = self.config.page_size
        self.payments = PaymentsStore(self.client, size)
        self.transfers = TransfersStore(self.client, size)
        self.beneficiaries = BeneficiariesStore(self.client, size)
        self.grouped_payments = GroupedPaymentsStore(self.client, size)
        self.mobile_services = MobileServicesStore(self.client, size)
        self.countries = CountriesStore(self.client, size)
        self.settings = SettingsStore(self.client, size)
        self.analytics = AnalyticsStore(self.client)
        self.users = UsersStore(self.client)

        self.transfer = TransferWorkflow(
            self.transfers, audit=self.audit, user_id=self._user_id
        )

        for store in (
            self.payments,
            self.transfers,
            self.beneficiaries,
            self.grouped_payments,
            self.mobile_services,
            self.countries,
            self.settings,
            self.analytics,
            self.users,
            self.transfer,
        ):
            self.registry.register(store)

        self.organisations = OrganisationContext(
            self.client, self.storage, self.registry
        )
        self.session = Session(
            self.client,
            self.storage,
            organisations=self.organisations,
            registry=self.registry,
        )

    def _token(self) -> str | None:
        return self.session.token

    def _user_id(self) -> str | None:
        return self.session.user.id if self.session.user else None

    @property
    def organisation_id(self) -> str | None:
        return self.organisations.active_id

    async def start(self) -> None:
        """Restore the stored session, then confirm it with the server."""
        self.organisations.hydrate()
        if not self.session.hydrate():
            return

        if await self.session.refresh_user() is None:
            return
        await self.organisations.fetch_organisations()

    async def login(self, email: str, password: str) -> User:
        user = await self.session.login(email, password)
        await self.organisations.fetch_organisations()
        return user

    async def logout(self) -> None:
        await self.session.logout()

    def switch_organisation(self, organisation_id: str) -> bool:
        return self.organisations.switch_to(organisation_id)

    async def load(self) -> None:
        """Fetch the first page of every list plus the analytics figures."""
        organisation_id = self.organisation_id
        log.info("Loading dashboard for organisation %s", organisation_id)

        await self.payments.fetch(organisation_id=organisation_id)
        await self.transfers.fetch(organisation_id=organisation_id)
        await self.beneficiaries.fetch(organisation_id=organisation_id)
        await self.grouped_payments.fetch(organisation_id=organisation_id)
        await self.mobile_services.fetch()
        await self.countries.fetch()
        await self.settings.fetch(organisation_id)
        await self.analytics.fetch()

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "Dashboard":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
