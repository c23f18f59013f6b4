"""The signed-in user's organisations and which one is active.

Everything organisation-scoped is cleared through the store registry before
the active organisation changes, so a switch never shows stale data.
"""

import logging
from collections.abc import Callable
from typing import Any

import pydantic
from fastpay_client import ApiError, FastPayApiClient

from fastpay_sdk.exceptions import OrganisationNotFoundError
from fastpay_sdk.models import NewOrganisation, Organisation, OrganisationUpdate
from fastpay_sdk.normalizer import ORGANISATIONS, normalize_page
from fastpay_sdk.registry import StoreRegistry
from fastpay_sdk.storage import (
    ACTIVE_ORGANISATION_KEY,
    ORGANISATIONS_KEY,
    StateStorage,
)
from fastpay_sdk.types import ContextStatus

log = logging.getLogger(__name__)

SwitchListener = Callable[[str | None], None]


def _parse_organisations(raw: Any) -> list[Organisation]:
    if isinstance(raw, dict) and "id" in raw:
        raw_items: list[Any] = [raw]
    else:
        raw_items = normalize_page(raw, ORGANISATIONS).items

    organisations = []
    for item in raw_items:
        try:
            organisations.append(Organisation.model_validate(item))
        except pydantic.ValidationError:
            log.warning("Skipping malformed organisation: %r", item)

    return organisations


class OrganisationContext:
    def __init__(
        self,
        client: FastPayApiClient,
        storage: StateStorage,
        registry: StoreRegistry,
    ) -> None:
        self._client = client
        self._storage = storage
        self._registry = registry
        self._organisations: list[Organisation] = []
        self._preferred_id: str | None = None
        self._listeners: list[SwitchListener] = []
        self.status = ContextStatus.UNINITIALIZED
        self.is_loading = False
        self.last_error: Exception | None = None

    # -- views -------------------------------------------------------------

    @property
    def organisations(self) -> list[Organisation]:
        return list(self._organisations)

    @property
    def preferred_id(self) -> str | None:
        """The stored choice, which may not (or no longer) be valid."""
        return self._preferred_id

    @property
    def active_id(self) -> str | None:
        """Stored choice if it is a known organisation, else the first one."""
        if self.get(self._preferred_id) is not None:
            return self._preferred_id
        if self._organisations:
            return self._organisations[0].id
        return None

    @property
    def active_organisation(self) -> Organisation | None:
        return self.get(self.active_id)

    def get(self, organisation_id: str | None) -> Organisation | None:
        if organisation_id is None:
            return None
        return next(
            (o for o in self._organisations if o.id == organisation_id), None
        )

    def add_switch_listener(self, listener: SwitchListener) -> None:
        self._listeners.append(listener)

    def remove_switch_listener(self, listener: SwitchListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, organisation_id: str | None) -> None:
        for listener in list(self._listeners):
            listener(organisation_id)

    # -- lifecycle ---------------------------------------------------------

    def hydrate(self) -> None:
        """Restore the last known organisations and choice from storage.

        Provisional until ``fetch_organisations`` confirms it.
        """
        self._organisations = _parse_organisations(
            self._storage.get(ORGANISATIONS_KEY, [])
        )
        self._preferred_id = self._storage.get(ACTIVE_ORGANISATION_KEY)
        self.status = ContextStatus.HYDRATED

        log.debug(
            "Hydrated %d organisations, stored choice %s",
            len(self._organisations),
            self._preferred_id,
        )

    async def fetch_organisations(self) -> None:
        """Reload the organisation list and revalidate the active one.

        A failed fetch keeps whatever the context held before.
        """
        self.is_loading = True

        try:
            raw = await self._client.get_my_organisations()
        except ApiError as exc:
            log.warning("Fetching organisations failed, keeping current: %s", exc)
            self.last_error = exc
            return
        finally:
            self.is_loading = False

        organisations = _parse_organisations(raw)
        previous = self.active_id
        previous_preferred = self._preferred_id

        ids = [o.id for o in organisations]
        if previous_preferred in ids:
            resolved = previous_preferred
        elif ids:
            resolved = ids[0]
        else:
            resolved = None

        changed = previous is not None and resolved != previous
        if changed:
            log.info(
                "Active organisation %s is no longer available, moving to %s",
                previous,
                resolved,
            )
            self._registry.reset_all()

        self._organisations = organisations
        self._preferred_id = resolved
        self._storage.set(
            ORGANISATIONS_KEY,
            [o.model_dump(mode="json", by_alias=True) for o in organisations],
        )

        if resolved != previous_preferred:
            if resolved is None:
                self._storage.remove(ACTIVE_ORGANISATION_KEY)
            else:
                self._storage.set(ACTIVE_ORGANISATION_KEY, resolved)

        self.status = ContextStatus.LOADED
        self.last_error = None

        if changed:
            self._notify(resolved)

    def switch_to(self, organisation_id: str) -> bool:
        """Make ``organisation_id`` active.

        Every registered store is reset before the new id becomes visible.
        Returns False when it was already active.
        """
        if organisation_id == self.active_id:
            log.debug("Organisation %s is already active", organisation_id)
            return False

        if self.get(organisation_id) is None:
            raise OrganisationNotFoundError(organisation_id)

        self._registry.reset_all()
        self._preferred_id = organisation_id
        self._storage.set(ACTIVE_ORGANISATION_KEY, organisation_id)

        log.info("Switched to organisation %s", organisation_id)
        self._notify(organisation_id)
        return True

    def clear(self) -> None:
        self._organisations = []
        self._preferred_id = None
        self.status = ContextStatus.UNINITIALIZED
        self.last_error = None
        self._storage.remove(ORGANISATIONS_KEY, ACTIVE_ORGANISATION_KEY)

    # -- writes ------------------------------------------------------------

    async def _write(self, action: str, call) -> Any:
        try:
            result = await call()
        except Exception as exc:
            log.warning("Failed to %s organisation: %s", action, exc)
            self.last_error = exc
            raise

        await self.fetch_organisations()
        return result

    async def create(self, data: NewOrganisation) -> Any:
        body = data.to_body()
        return await self._write(
            "create", lambda: self._client.create_organisation(body)
        )

    async def update(self, organisation_id: str, data: OrganisationUpdate) -> Any:
        body = data.to_body()
        return await self._write(
            "update",
            lambda: self._client.update_organisation(organisation_id, body),
        )

    async def delete(self, organisation_id: str) -> Any:
        return await self._write(
            "delete", lambda: self._client.delete_organisation(organisation_id)
        )
