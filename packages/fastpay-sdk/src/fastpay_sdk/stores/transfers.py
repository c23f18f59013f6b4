from typing import Any

from fastpay_sdk.models import Transfer
from fastpay_sdk.normalizer import TRANSFERS
from fastpay_sdk.stores.base import ResourceStore


class TransfersStore(ResourceStore[Transfer]):
    name = "transfers"
    model = Transfer
    envelope_keys = TRANSFERS

    async def _request_list(
        self, page: int, size: int, organisation_id: str | None
    ) -> Any:
        return await self._client.list_transfers(page, size, organisation_id)

    async def _request_create(self, data: dict[str, Any]) -> Any:
        return await self._client.initialize_transfer(data)

    async def get(self, transfer_id: str) -> Transfer | None:
        return await self._read_one(lambda: self._client.get_transfer(transfer_id))

    async def request_otp(self) -> None:
        """Ask the server to send a transfer OTP. Nothing about the transfer is sent."""
        await self._mutate(
            "request OTP for", self._client.request_transfer_otp, refetch=False
        )

    async def commit(self, body: dict[str, Any]) -> Any:
        """Initialise a transfer. ``body`` must carry the OTP as ``otp_code``."""
        return await self._mutate(
            "commit", lambda: self._client.initialize_transfer(body), refetch=False
        )
