from typing import Any

from fastpay_sdk.models import Country
from fastpay_sdk.normalizer import COUNTRIES
from fastpay_sdk.stores.base import ResourceStore


class CountriesStore(ResourceStore[Country]):
    name = "countries"
    model = Country
    envelope_keys = COUNTRIES

    async def _request_list(
        self, page: int, size: int, organisation_id: str | None
    ) -> Any:
        return await self._client.list_countries()

    async def _request_delete(self, item_id: str) -> Any:
        return await self._client.delete_country(item_id)

    async def enable_transactions(self, country_id: str) -> Any:
        return await self._mutate(
            "enable transactions for",
            lambda: self._client.enable_country_transactions(country_id),
        )

    async def disable_transactions(self, country_id: str) -> Any:
        return await self._mutate(
            "disable transactions for",
            lambda: self._client.disable_country_transactions(country_id),
        )
