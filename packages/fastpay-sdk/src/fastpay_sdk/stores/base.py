"""Generic resource store.

A store owns one entity collection: its items, pagination, loading flag and
last error. Reads degrade to an empty list on failure; writes record the
error and re-raise so the caller can tell the user.

Two counters keep late responses from corrupting state:

* every ``fetch`` takes a sequence number and only the most recently issued
  fetch may write the collection;
* ``reset`` bumps an epoch, and nothing started in an older epoch may write.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import pydantic
from fastpay_client import ApiError, FastPayApiClient

from fastpay_sdk.config import DEFAULT_PAGE_SIZE
from fastpay_sdk.models import Entity, Input
from fastpay_sdk.normalizer import normalize_page

log = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)


@dataclass
class Pagination:
    page: int = 1
    size: int = DEFAULT_PAGE_SIZE
    total: int = 0


@dataclass
class ResourceCollection(Generic[T]):
    items: list[T] = field(default_factory=list)
    pagination: Pagination = field(default_factory=Pagination)
    is_loading: bool = False
    last_error: Exception | None = None


def body_of(data: Input | dict[str, Any]) -> dict[str, Any]:
    if isinstance(data, Input):
        return data.to_body()
    return dict(data)


class ResourceStore(Generic[T]):
    name: str = "resources"
    model: type[Entity] = Entity
    envelope_keys: tuple[str, ...] = ()

    def __init__(
        self, client: FastPayApiClient, page_size: int = DEFAULT_PAGE_SIZE
    ) -> None:
        self._client = client
        self._page_size = page_size
        self._epoch = 0
        self._fetch_seq = 0
        self._in_flight = 0
        self._scope: str | None = None
        self._state: ResourceCollection[T] = self._initial_state()
        self.selected: T | None = None
        self.has_loaded = False

    def _initial_state(self) -> ResourceCollection[T]:
        return ResourceCollection(pagination=Pagination(size=self._page_size))

    # -- read-only view ----------------------------------------------------

    @property
    def items(self) -> list[T]:
        return list(self._state.items)

    @property
    def pagination(self) -> Pagination:
        return self._state.pagination

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def last_error(self) -> Exception | None:
        return self._state.last_error

    @property
    def scope(self) -> str | None:
        """Organisation id the collection was last fetched for."""
        return self._scope

    def find(self, item_id: str) -> T | None:
        return next((item for item in self._state.items if item.id == item_id), None)

    def clear_error(self) -> None:
        self._state.last_error = None

    # -- remote calls, overridden per resource -------------------------------

    async def _request_list(
        self, page: int, size: int, organisation_id: str | None
    ) -> Any:
        raise NotImplementedError

    async def _request_create(self, data: dict[str, Any]) -> Any:
        raise NotImplementedError(f"{self.name} cannot be created")

    async def _request_update(self, item_id: str, data: dict[str, Any]) -> Any:
        raise NotImplementedError(f"{self.name} cannot be updated")

    async def _request_delete(self, item_id: str) -> Any:
        raise NotImplementedError(f"{self.name} cannot be deleted")

    # -- bookkeeping -------------------------------------------------------

    def _begin(self) -> int:
        self._in_flight += 1
        self._state.is_loading = True
        return self._epoch

    def _end(self, epoch: int) -> None:
        if epoch != self._epoch:
            return
        self._in_flight = max(self._in_flight - 1, 0)
        self._state.is_loading = self._in_flight > 0

    def _parse_items(self, raw_items: list[Any]) -> list[T]:
        items: list[T] = []

        for raw in raw_items:
            try:
                items.append(self.model.model_validate(raw))
            except pydantic.ValidationError:
                log.warning("Skipping malformed %s item: %r", self.name, raw)

        return items

    def _parse_one(self, raw: Any) -> T | None:
        try:
            return self.model.model_validate(raw)
        except pydantic.ValidationError:
            log.warning("Malformed %s payload: %r", self.name, raw)
            return None

    # -- operations --------------------------------------------------------

    async def fetch(
        self,
        page: int | None = None,
        size: int | None = None,
        *,
        organisation_id: str | None = None,
    ) -> None:
        """Replace the collection with one page from the server.

        Failures leave an empty list behind instead of raising.
        """
        page = page or 1
        size = size or self._page_size

        self._scope = organisation_id
        self._fetch_seq += 1
        seq = self._fetch_seq
        epoch = self._begin()

        try:
            raw = await self._request_list(page, size, organisation_id)

        except ApiError as exc:
            if epoch == self._epoch and seq == self._fetch_seq:
                log.warning("Fetching %s failed, showing no data: %s", self.name, exc)
                self._state.items = []
                self._state.pagination = Pagination(page=page, size=size, total=0)
                self.has_loaded = False
            return

        else:
            if epoch != self._epoch or seq != self._fetch_seq:
                log.debug("Dropping stale %s response (request %d)", self.name, seq)
                return

            result = normalize_page(raw, self.envelope_keys, page, size)
            self._state.items = self._parse_items(result.items)
            self._state.pagination = Pagination(
                page=result.page, size=result.size, total=result.total
            )
            self._state.last_error = None
            self.has_loaded = True

        finally:
            self._end(epoch)

    async def refresh(self) -> None:
        """Refetch the current page in the current scope."""
        await self.fetch(
            self.pagination.page,
            self.pagination.size,
            organisation_id=self._scope,
        )

    async def _mutate(
        self,
        action: str,
        call: Callable[[], Awaitable[Any]],
        *,
        refetch: bool = True,
    ) -> Any:
        """Run a write; on success optionally refetch, on failure record and raise."""
        epoch = self._begin()
        self._state.last_error = None

        try:
            result = await call()

        except Exception as exc:
            if epoch == self._epoch:
                self._state.last_error = exc
            log.warning("Failed to %s %s: %s", action, self.name, exc)
            raise

        finally:
            self._end(epoch)

        if refetch and epoch == self._epoch:
            await self.refresh()

        return result

    async def _read_one(self, call: Callable[[], Awaitable[Any]]) -> T | None:
        """Load a single entity into ``selected``; failures clear it."""
        epoch = self._begin()

        try:
            raw = await call()

        except ApiError as exc:
            log.warning("Fetching %s item failed: %s", self.name, exc)
            if epoch == self._epoch:
                self.selected = None
            return None

        else:
            if epoch != self._epoch:
                return None
            self.selected = self._parse_one(raw)
            return self.selected

        finally:
            self._end(epoch)

    async def create(self, data: Input | dict[str, Any]) -> Any:
        """Create remotely, then refetch to pick up server-assigned fields."""
        body = body_of(data)
        return await self._mutate("create", lambda: self._request_create(body))

    async def update(self, item_id: str, patch: Input | dict[str, Any]) -> Any:
        body = body_of(patch)
        return await self._mutate(
            "update", lambda: self._request_update(item_id, body)
        )

    async def delete(self, item_id: str) -> Any:
        """Remove locally right away; put the item back if the server refuses."""
        removed = [
            (index, item)
            for index, item in enumerate(self._state.items)
            if item.id == item_id
        ]
        self._state.items = [i for i in self._state.items if i.id != item_id]
        pagination = self._state.pagination
        pagination.total = max(pagination.total - len(removed), 0)

        epoch = self._begin()
        self._state.last_error = None

        try:
            result = await self._request_delete(item_id)

        except Exception as exc:
            if epoch == self._epoch:
                self._restore(removed)
                self._state.last_error = exc
            log.warning("Failed to delete %s %s: %s", self.name, item_id, exc)
            raise

        finally:
            self._end(epoch)

        if self.selected is not None and self.selected.id == item_id:
            self.selected = None

        return result

    def _restore(self, removed: list[tuple[int, T]]) -> None:
        present = {item.id for item in self._state.items}

        for index, item in removed:
            if item.id not in present:
                self._state.items.insert(min(index, len(self._state.items)), item)
                self._state.pagination.total += 1

    def reset(self) -> None:
        """Drop everything and ignore responses to requests already sent."""
        self._epoch += 1
        self._in_flight = 0
        self._scope = None
        self._state = self._initial_state()
        self.selected = None
        self.has_loaded = False
