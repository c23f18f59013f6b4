"""Registry of organisation-scoped stores and the reset coordinator."""

import logging
from typing import Protocol

log = logging.getLogger(__name__)


class Resettable(Protocol):
    name: str

    def reset(self) -> None: ...


class StoreRegistry:
    """Every store whose contents belong to one organisation.

    ``reset_all`` is called before the active organisation changes and on
    logout, so nothing fetched for one tenant is ever shown under another.
    """

    def __init__(self) -> None:
        self._stores: list[Resettable] = []

    def register(self, store: Resettable) -> None:
        if store not in self._stores:
            self._stores.append(store)

    def unregister(self, store: Resettable) -> None:
        if store in self._stores:
            self._stores.remove(store)

    def reset_all(self) -> None:
        for store in self._stores:
            store.reset()

        log.info(
            "Reset %d stores: %s",
            len(self._stores),
            ", ".join(s.name for s in self._stores),
        )

    def __iter__(self):
        return iter(list(self._stores))

    def __len__(self) -> int:
        return len(self._stores)
