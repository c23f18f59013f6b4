"""API keys and their webhooks.

A merchant's integration settings: one list of API keys per organisation,
and for each key at most one webhook endpoint.
"""

import logging
from typing import Any

from fastpay_client import FastPayApiClient

from fastpay_sdk.config import DEFAULT_PAGE_SIZE
from fastpay_sdk.exceptions import InvalidResponseError, ValidationError
from fastpay_sdk.models import ApiKey, NewApiKey, Webhook, WebhookInput, WebhookSaveResult
from fastpay_sdk.normalizer import API_KEYS, WEBHOOKS
from fastpay_sdk.stores.base import ResourceStore, body_of
from fastpay_sdk.types import WebhookAction

log = logging.getLogger(__name__)

ONE_WEBHOOK_PER_KEY = (
    "Only one webhook is allowed per API key; the existing webhook was updated."
)


class ApiKeysStore(ResourceStore[ApiKey]):
    name = "api keys"
    model = ApiKey
    envelope_keys = API_KEYS

    async def _request_list(
        self, page: int, size: int, organisation_id: str | None
    ) -> Any:
        if organisation_id is None:
            log.debug("No organisation given, not listing API keys")
            return []
        return await self._client.list_api_keys(organisation_id)

    async def _request_delete(self, item_id: str) -> Any:
        return await self._client.delete_api_key(item_id)

    async def create(
        self, data: NewApiKey, *, organisation_id: str | None = None
    ) -> Any:
        """Generate a key. The response holds the secret, shown only once."""
        organisation_id = organisation_id or self.scope
        if organisation_id is None:
            raise ValidationError("An organisation is required to generate an API key")

        body = body_of(data)
        return await self._mutate(
            "generate",
            lambda: self._client.generate_api_key(organisation_id, body),
        )

    async def regenerate_secret(self, api_key_id: str) -> Any:
        return await self._mutate(
            "regenerate secret of",
            lambda: self._client.regenerate_api_key_secret(api_key_id),
            refetch=False,
        )


class WebhooksStore(ResourceStore[Webhook]):
    """Webhooks of a single API key."""

    name = "webhooks"
    model = Webhook
    envelope_keys = WEBHOOKS

    def __init__(
        self,
        client: FastPayApiClient,
        api_key_id: str,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(client, page_size)
        self.api_key_id = api_key_id

    async def _request_list(
        self, page: int, size: int, organisation_id: str | None
    ) -> Any:
        return await self._client.list_webhooks(self.api_key_id)

    async def _request_create(self, data: dict[str, Any]) -> Any:
        return await self._client.create_webhook(self.api_key_id, data)

    async def _request_update(self, item_id: str, data: dict[str, Any]) -> Any:
        return await self._client.update_webhook(self.api_key_id, item_id, data)

    async def _request_delete(self, item_id: str) -> Any:
        return await self._client.delete_webhook(self.api_key_id, item_id)

    async def save(self, data: WebhookInput) -> WebhookSaveResult:
        """Create the key's webhook, or update it in place if one exists."""
        if not self.has_loaded:
            await self.fetch()

        if not self.has_loaded:
            exc = InvalidResponseError(
                f"Could not load the webhooks of API key {self.api_key_id}"
            )
            self._state.last_error = exc
            log.warning("Not saving webhook: %s", exc)
            raise exc

        existing = self.items
        if existing:
            webhook = existing[0]
            response = await self.update(webhook.id, data)
            log.info(
                "API key %s already has webhook %s, updated it",
                self.api_key_id,
                webhook.id,
            )
            return WebhookSaveResult(
                action=WebhookAction.UPDATED,
                webhook_id=webhook.id,
                message=ONE_WEBHOOK_PER_KEY,
                response=response,
            )

        response = await self.create(data)
        webhook_id = response.get("id") if isinstance(response, dict) else None
        if webhook_id is None and self.items:
            webhook_id = self.items[0].id

        return WebhookSaveResult(
            action=WebhookAction.CREATED,
            webhook_id=webhook_id,
            message="Webhook created",
            response=response,
        )


class SettingsStore:
    """API keys of the active organisation plus one webhook store per key."""

    name = "settings"

    def __init__(
        self, client: FastPayApiClient, page_size: int = DEFAULT_PAGE_SIZE
    ) -> None:
        self._client = client
        self._page_size = page_size
        self.api_keys = ApiKeysStore(client, page_size)
        self._webhooks: dict[str, WebhooksStore] = {}

    def webhooks(self, api_key_id: str) -> WebhooksStore:
        if api_key_id not in self._webhooks:
            self._webhooks[api_key_id] = WebhooksStore(
                self._client, api_key_id, self._page_size
            )
        return self._webhooks[api_key_id]

    async def fetch(self, organisation_id: str | None) -> None:
        await self.api_keys.fetch(organisation_id=organisation_id)

    async def create_api_key(
        self, data: NewApiKey, *, organisation_id: str | None = None
    ) -> Any:
        return await self.api_keys.create(data, organisation_id=organisation_id)

    async def regenerate_secret(self, api_key_id: str) -> Any:
        return await self.api_keys.regenerate_secret(api_key_id)

    async def delete_api_key(self, api_key_id: str) -> Any:
        result = await self.api_keys.delete(api_key_id)
        self._webhooks.pop(api_key_id, None)
        return result

    async def save_webhook(self, api_key_id: str, data: WebhookInput) -> WebhookSaveResult:
        return await self.webhooks(api_key_id).save(data)

    def reset(self) -> None:
        self.api_keys.reset()
        for store in self._webhooks.values():
            store.reset()
        self._webhooks.clear()
