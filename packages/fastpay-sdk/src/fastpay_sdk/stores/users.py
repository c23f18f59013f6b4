"""Admin view of a single user account."""

import logging
from typing import Any

import pydantic
from fastpay_client import ApiError, FastPayApiClient

from fastpay_sdk.models import User

log = logging.getLogger(__name__)


class UsersStore:
    """Look up and delete users by id.

    The API has no user listing, so the store holds only the user last
    looked up.
    """

    name = "users"

    def __init__(self, client: FastPayApiClient) -> None:
        self._client = client
        self._epoch = 0
        self.selected: User | None = None
        self.last_error: Exception | None = None

    def clear_error(self) -> None:
        self.last_error = None

    async def get(self, user_id: str) -> User | None:
        epoch = self._epoch

        try:
            raw = await self._client.get_user(user_id)
        except ApiError as exc:
            log.warning("Fetching user %s failed: %s", user_id, exc)
            if epoch == self._epoch:
                self.selected = None
            return None

        if epoch != self._epoch:
            return None

        try:
            self.selected = User.model_validate(raw)
        except pydantic.ValidationError as exc:
            log.warning("Dropping malformed user %s: %s", user_id, exc)
            self.selected = None

        return self.selected

    async def delete(self, user_id: str) -> Any:
        self.last_error = None

        try:
            result = await self._client.delete_user(user_id)
        except ApiError as exc:
            self.last_error = exc
            log.warning("Failed to delete user %s: %s", user_id, exc)
            raise

        log.info("Deleted user %s", user_id)
        if self.selected is not None and self.selected.id == user_id:
            self.selected = None

        return result

    def reset(self) -> None:
        self._epoch += 1
        self.selected = None
        self.last_error = None
