import logging
import time
from typing import Any

import pydantic
from fastpay_client import ApiError

from fastpay_sdk.exceptions import InvalidResponseError
from fastpay_sdk.models import (
    GroupedPayment,
    GroupedPaymentReceipt,
    NewGroupedPayment,
    Payment,
    PaymentFilter,
)
from fastpay_sdk.normalizer import GROUPED_PAYMENTS, PAYMENTS, Page, normalize_page
from fastpay_sdk.stores.base import ResourceStore, body_of

log = logging.getLogger(__name__)

DEFAULT_WINDOW_MS = 30 * 24 * 60 * 60 * 1000


def default_date_range(now_ms: int | None = None) -> tuple[int, int]:
    """The last thirty days, as epoch milliseconds."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return now_ms - DEFAULT_WINDOW_MS, now_ms


class GroupedPaymentsStore(ResourceStore[GroupedPayment]):
    name = "grouped payments"
    model = GroupedPayment
    envelope_keys = GROUPED_PAYMENTS

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.date_from: int | None = None
        self.date_to: int | None = None

    async def _request_list(
        self, page: int, size: int, organisation_id: str | None
    ) -> Any:
        date_from, date_to = default_date_range()
        if self.date_from is not None:
            date_from = self.date_from
        if self.date_to is not None:
            date_to = self.date_to

        return await self._client.list_grouped_payments(
            date_from, date_to, page, size, organisation_id
        )

    async def _request_delete(self, item_id: str) -> Any:
        return await self._client.delete_grouped_payment(item_id)

    async def fetch(
        self,
        page: int | None = None,
        size: int | None = None,
        *,
        organisation_id: str | None = None,
        date_from: int | None = None,
        date_to: int | None = None,
    ) -> None:
        self.date_from = date_from
        self.date_to = date_to
        await super().fetch(page, size, organisation_id=organisation_id)

    async def refresh(self) -> None:
        await self.fetch(
            self.pagination.page,
            self.pagination.size,
            organisation_id=self.scope,
            date_from=self.date_from,
            date_to=self.date_to,
        )

    async def get_by_reference(self, reference: str) -> GroupedPayment | None:
        return await self._read_one(
            lambda: self._client.get_grouped_payment_by_ref(reference)
        )

    async def create(self, data: NewGroupedPayment) -> GroupedPaymentReceipt:
        """Create a grouped payment and return its payment link.

        Raises ``InvalidResponseError`` when the server accepts the request
        but sends no grouped payment back.
        """
        body = body_of(data)
        if "organisation_id" not in body and self.scope is not None:
            body["organisation_id"] = self.scope

        response = await self._mutate(
            "create", lambda: self._client.create_grouped_payment(body)
        )

        raw = response.get("grouped_payment") if isinstance(response, dict) else None
        if raw is None:
            raise InvalidResponseError("No grouped payment in the server response")

        try:
            receipt = GroupedPaymentReceipt.model_validate(raw)
        except pydantic.ValidationError as e:
            raise InvalidResponseError(f"Malformed grouped payment: {e}") from e

        log.info("Created grouped payment %s", receipt.reference)
        return receipt

    async def fetch_transactions(
        self,
        grouped_payment_id: str,
        filters: PaymentFilter | None = None,
        page: int | None = None,
        size: int | None = None,
    ) -> Page[Payment]:
        """Payments made against one grouped payment link.

        Like every read, a failure yields an empty page.
        """
        page = page or 1
        size = size or self._page_size

        if filters is not None:
            params = filters.to_body()
        else:
            date_from, date_to = default_date_range()
            params = {"dateFrom": date_from, "dateTo": date_to}

        try:
            raw = await self._client.list_grouped_payment_transactions(
                grouped_payment_id, params, page, size
            )
        except ApiError as exc:
            log.warning(
                "Fetching transactions of grouped payment %s failed: %s",
                grouped_payment_id,
                exc,
            )
            return Page(page=page, size=size, total=0)

        result = normalize_page(raw, PAYMENTS, page, size)
        payments = []
        for item in result.items:
            try:
                payments.append(Payment.model_validate(item))
            except pydantic.ValidationError:
                log.warning("Skipping malformed payment: %r", item)

        return Page(
            items=payments,
            page=result.page,
            size=result.size,
            total=result.total,
        )

    def reset(self) -> None:
        super().reset()
        self.date_from = None
        self.date_to = None
