from typing import Any

from fastpay_sdk.models import MobileService
from fastpay_sdk.normalizer import MOBILE_SERVICES
from fastpay_sdk.stores.base import ResourceStore


class MobileServicesStore(ResourceStore[MobileService]):
    name = "mobile services"
    model = MobileService
    envelope_keys = MOBILE_SERVICES

    async def _request_list(
        self, page: int, size: int, organisation_id: str | None
    ) -> Any:
        return await self._client.list_mobile_services()

    def active(self) -> list[MobileService]:
        return [s for s in self.items if s.is_active]

    async def toggle(self, service_id: str) -> Any:
        """Enable a disabled service or disable an enabled one."""
        return await self._mutate(
            "toggle", lambda: self._client.toggle_mobile_service(service_id)
        )
