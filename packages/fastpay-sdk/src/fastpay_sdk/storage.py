"""Durable client-side state.

A single JSON document under the data directory holds the session token,
the signed-in user, the active organisation id and the last organisation
list. Values read back are a starting point only; callers revalidate them
against the server.
"""

import json
import logging
from pathlib import Path
from typing import Any

from fastpay_sdk.config import DATA_DIR

log = logging.getLogger(__name__)

DEFAULT_PATH = DATA_DIR / ".fastpay-state.json"

AUTH_TOKEN_KEY = "auth_token"
AUTH_USER_KEY = "auth_user"
ACTIVE_ORGANISATION_KEY = "current_organisation_id"
ORGANISATIONS_KEY = "organisations"


class StateStorage:
    """JSON-backed key/value store."""

    def __init__(self, path: Path = DEFAULT_PATH) -> None:
        self._path = path
        self._values: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            log.debug("No state file at %s", self._path)
            return {}

        try:
            data = json.loads(self._path.read_text())
        except (json.JSONDecodeError, TypeError):
            log.warning("Corrupt state file at %s, ignoring", self._path)
            return {}

        if not isinstance(data, dict):
            log.warning("Corrupt state file at %s, ignoring", self._path)
            return {}

        return data

    def _save(self) -> None:
        self._path.write_text(json.dumps(self._values, indent=2) + "\n")
        log.debug("State saved to %s", self._path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value
        self._save()

    def remove(self, *keys: str) -> None:
        removed = [k for k in keys if self._values.pop(k, None) is not None]
        if removed:
            self._save()

    def clear(self) -> None:
        self._values = {}
        if self._path.exists():
            self._path.unlink()
        log.debug("State cleared at %s", self._path)
