from typing import Any

from fastpay_sdk.models import Beneficiary, BeneficiaryUpdate, NewBeneficiary
from fastpay_sdk.normalizer import BENEFICIARIES
from fastpay_sdk.stores.base import ResourceStore


class BeneficiariesStore(ResourceStore[Beneficiary]):
    """Saved transfer recipients.

    With an organisation id the organisation's beneficiaries are listed,
    otherwise the signed-in user's own. ``fetch_all`` lists every
    beneficiary and is meant for admins.
    """

    name = "beneficiaries"
    model = Beneficiary
    envelope_keys = BENEFICIARIES

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._list_all = False

    async def _request_list(
        self, page: int, size: int, organisation_id: str | None
    ) -> Any:
        if self._list_all:
            return await self._client.list_beneficiaries(page, size)
        if organisation_id is not None:
            return await self._client.list_organisation_beneficiaries(
                organisation_id, page, size
            )
        return await self._client.list_my_beneficiaries(page, size)

    async def _request_create(self, data: dict[str, Any]) -> Any:
        return await self._client.create_beneficiary(data)

    async def _request_update(self, item_id: str, data: dict[str, Any]) -> Any:
        return await self._client.update_beneficiary(item_id, data)

    async def _request_delete(self, item_id: str) -> Any:
        return await self._client.delete_beneficiary(item_id)

    async def fetch(
        self,
        page: int | None = None,
        size: int | None = None,
        *,
        organisation_id: str | None = None,
    ) -> None:
        self._list_all = False
        await super().fetch(page, size, organisation_id=organisation_id)

    async def fetch_all(self, page: int | None = None, size: int | None = None) -> None:
        self._list_all = True
        await super().fetch(page, size)

    async def refresh(self) -> None:
        if self._list_all:
            await self.fetch_all(self.pagination.page, self.pagination.size)
        else:
            await super().refresh()

    async def create(self, data: NewBeneficiary) -> Any:
        return await super().create(data)

    async def update(self, item_id: str, patch: BeneficiaryUpdate) -> Any:
        return await super().update(item_id, patch)

    def reset(self) -> None:
        super().reset()
        self._list_all = False
