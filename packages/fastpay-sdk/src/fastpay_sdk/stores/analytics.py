"""Dashboard figures: totals, chart series and top beneficiaries.

Unlike the list stores this one holds three independent documents. Each
read keeps the previous value when it fails and records the error, so the
dashboard can show stale figures next to a message.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import pydantic
from fastpay_client import ApiError, FastPayApiClient

from fastpay_sdk.exceptions import InvalidResponseError
from fastpay_sdk.models import AnalyticsGraph, AnalyticsOverview, TopBeneficiaries

log = logging.getLogger(__name__)


class AnalyticsStore:
    name = "analytics"

    def __init__(self, client: FastPayApiClient) -> None:
        self._client = client
        self._epoch = 0
        self._in_flight = 0
        self.overview: AnalyticsOverview | None = None
        self.graph: AnalyticsGraph | None = None
        self.top_beneficiaries: TopBeneficiaries | None = None
        self.last_error: Exception | None = None

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    def clear_error(self) -> None:
        self.last_error = None

    async def _load(
        self,
        attr: str,
        call: Callable[[], Awaitable[Any]],
        model: type[pydantic.BaseModel],
        wrap_key: str | None = None,
    ) -> Any:
        epoch = self._epoch
        self._in_flight += 1
        self.last_error = None

        try:
            raw = await call()

        except ApiError as exc:
            if epoch == self._epoch:
                self.last_error = exc
            log.warning("Fetching %s failed: %s", attr, exc)
            return None

        finally:
            if epoch == self._epoch:
                self._in_flight = max(self._in_flight - 1, 0)

        if epoch != self._epoch:
            log.debug("Dropping %s response from before a reset", attr)
            return None

        if wrap_key is not None and isinstance(raw, list):
            raw = {wrap_key: raw}

        try:
            value = model.model_validate(raw)
        except pydantic.ValidationError as exc:
            log.warning("Malformed %s response: %s", attr, exc)
            self.last_error = InvalidResponseError(f"Malformed {attr} response")
            return None

        setattr(self, attr, value)
        return value

    async def fetch_overview(self) -> AnalyticsOverview | None:
        return await self._load(
            "overview", self._client.get_analytics_overview, AnalyticsOverview
        )

    async def fetch_graph(self) -> AnalyticsGraph | None:
        return await self._load(
            "graph", self._client.get_analytics_graph, AnalyticsGraph, "data"
        )

    async def fetch_top_beneficiaries(self) -> TopBeneficiaries | None:
        return await self._load(
            "top_beneficiaries",
            self._client.get_top_beneficiaries,
            TopBeneficiaries,
            "beneficiaries",
        )

    async def fetch(self) -> None:
        await self.fetch_overview()
        await self.fetch_graph()
        await self.fetch_top_beneficiaries()

    def reset(self) -> None:
        self._epoch += 1
        self._in_flight = 0
        self.overview = None
        self.graph = None
        self.top_beneficiaries = None
        self.last_error = None
