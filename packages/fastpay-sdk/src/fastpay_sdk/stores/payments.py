import logging
from typing import Any

from fastpay_sdk.models import NewDirectPayment, NewPayment, Payment, PaymentFilter
from fastpay_sdk.normalizer import PAYMENTS
from fastpay_sdk.stores.base import ResourceStore, body_of

log = logging.getLogger(__name__)


class PaymentsStore(ResourceStore[Payment]):
    """Payments of the active organisation, optionally narrowed by a filter.

    While a filter is set, ``fetch`` and the refetch after a write go through
    the filter endpoint. ``filter(None)`` goes back to the plain listing.
    """

    name = "payments"
    model = Payment
    envelope_keys = PAYMENTS

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.filters: PaymentFilter | None = None

    async def _request_list(
        self, page: int, size: int, organisation_id: str | None
    ) -> Any:
        if self.filters is not None:
            return await self._client.filter_payments(
                self.filters.to_body(), page, size
            )
        return await self._client.list_payments(page, size, organisation_id)

    async def _request_create(self, data: dict[str, Any]) -> Any:
        return await self._client.create_payment(data)

    async def _request_delete(self, item_id: str) -> Any:
        return await self._client.delete_payment(item_id)

    async def filter(
        self,
        filters: PaymentFilter | None,
        page: int | None = None,
        size: int | None = None,
        *,
        organisation_id: str | None = None,
    ) -> None:
        self.filters = filters
        await self.fetch(page, size, organisation_id=organisation_id)

    def _with_scope(self, data: NewPayment) -> dict[str, Any]:
        body = body_of(data)
        if "organisation_id" not in body and self.scope is not None:
            body["organisation_id"] = self.scope
        return body

    async def create(self, data: NewPayment) -> Any:
        body = self._with_scope(data)
        return await self._mutate(
            "create", lambda: self._client.create_payment(body)
        )

    async def create_direct(self, data: NewDirectPayment) -> Any:
        body = self._with_scope(data)
        return await self._mutate(
            "create direct", lambda: self._client.create_direct_payment(body)
        )

    async def get(self, payment_id: str) -> Payment | None:
        return await self._read_one(lambda: self._client.get_payment(payment_id))

    async def get_by_reference(self, reference: str) -> Payment | None:
        return await self._read_one(
            lambda: self._client.get_payment_by_ref(reference)
        )

    async def _transition(self, action: str, payment_id: str, call) -> Any:
        result = await self._mutate(action, call, refetch=False)
        log.info("Payment %s: %s", payment_id, action)
        await self.get(payment_id)
        return result

    async def start_execution(self, payment_id: str) -> Any:
        return await self._transition(
            "start execution",
            payment_id,
            lambda: self._client.start_payment_execution(payment_id),
        )

    async def complete(self, payment_id: str) -> Any:
        return await self._transition(
            "complete",
            payment_id,
            lambda: self._client.complete_payment(payment_id),
        )

    async def fail(self, payment_id: str) -> Any:
        return await self._transition(
            "fail",
            payment_id,
            lambda: self._client.fail_payment(payment_id),
        )

    def reset(self) -> None:
        super().reset()
        self.filters = None
