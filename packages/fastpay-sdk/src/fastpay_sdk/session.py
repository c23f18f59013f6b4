"""Signed-in user and bearer token.

The session is the API client's token provider. The token and user are
kept in ``StateStorage`` so they survive restarts; ``hydrate`` restores
them and ``refresh_user`` checks them against the server.
"""

import logging
from typing import Any

import pydantic
from fastpay_client import ApiError, FastPayApiClient

from fastpay_sdk.exceptions import InvalidResponseError, OtpFormatError, ValidationError
from fastpay_sdk.models import LoginResponse, User
from fastpay_sdk.organisations import OrganisationContext
from fastpay_sdk.registry import StoreRegistry
from fastpay_sdk.storage import AUTH_TOKEN_KEY, AUTH_USER_KEY, StateStorage
from fastpay_sdk.types import UserRole
from fastpay_sdk.workflow import OTP_PATTERN

log = logging.getLogger(__name__)


class Session:
    def __init__(
        self,
        client: FastPayApiClient,
        storage: StateStorage,
        *,
        organisations: OrganisationContext | None = None,
        registry: StoreRegistry | None = None,
    ) -> None:
        self._client = client
        self._storage = storage
        self._organisations = organisations
        self._registry = registry
        self.token: str | None = None
        self.user: User | None = None
        self.expire_at: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def role(self) -> UserRole | None:
        if self.user is None or self.user.role is None:
            return None
        try:
            return UserRole(self.user.role)
        except ValueError:
            log.warning("Unknown user role %r", self.user.role)
            return None

    def get_token(self) -> str | None:
        return self.token

    def _remember(self, user: User, token: str | None = None) -> None:
        self.user = user
        self._storage.set(AUTH_USER_KEY, user.model_dump(mode="json", by_alias=True))
        if token is not None:
            self.token = token
            self._storage.set(AUTH_TOKEN_KEY, token)

    def _forget(self) -> None:
        self.token = None
        self.user = None
        self.expire_at = None
        self._storage.remove(AUTH_TOKEN_KEY, AUTH_USER_KEY)

        if self._organisations is not None:
            self._organisations.clear()
        if self._registry is not None:
            self._registry.reset_all()

    def hydrate(self) -> bool:
        """Restore a stored session. Returns True when a token was found."""
        self.token = self._storage.get(AUTH_TOKEN_KEY)

        raw_user = self._storage.get(AUTH_USER_KEY)
        if raw_user is not None:
            try:
                self.user = User.model_validate(raw_user)
            except pydantic.ValidationError:
                log.warning("Stored user is malformed, ignoring")
                self.user = None

        log.debug("Session hydrated (authenticated=%s)", self.is_authenticated)
        return self.is_authenticated

    async def login(self, email: str, password: str) -> User:
        raw = await self._client.login(email, password)

        try:
            response = LoginResponse.model_validate(raw)
        except pydantic.ValidationError as e:
            raise InvalidResponseError(f"Malformed login response: {e}") from e

        self.expire_at = response.expire_at
        self._remember(response.user, response.auth_token)
        log.info("Signed in as %s", response.user.email)
        return response.user

    async def register(self, fullname: str, email: str, password: str) -> Any:
        response = await self._client.register(fullname, email, password)
        log.info("Registered %s", email)
        return response

    async def logout(self) -> None:
        """Sign out. Local state is always cleared, even if the server call fails."""
        if self.token is not None:
            try:
                await self._client.logout()
            except ApiError as exc:
                log.warning("Server logout failed, clearing local session anyway: %s", exc)

        self._forget()
        log.info("Signed out")

    async def refresh_user(self) -> User | None:
        """Reload the user from the server.

        A 401 means the stored token is no longer valid and ends the session.
        """
        try:
            raw = await self._client.get_current_user()
        except ApiError as exc:
            if exc.status_code == 401:
                log.warning("Session expired, signing out")
                self._forget()
                return None
            log.warning("Refreshing user failed: %s", exc)
            return self.user

        try:
            user = User.model_validate(raw)
        except pydantic.ValidationError:
            log.warning("Malformed user payload: %r", raw)
            return self.user

        self._remember(user)
        return user

    async def verify_identity(
        self, fullname: str, files: dict[str, Any] | None = None
    ) -> Any:
        """Submit KYC documents; keeps the user the server sends back."""
        if not fullname.strip():
            raise ValidationError("Full name is required")

        response = await self._client.verify_identity(fullname.strip(), files)

        raw_user = response.get("user") if isinstance(response, dict) else None
        if raw_user is not None:
            try:
                self._remember(User.model_validate(raw_user))
            except pydantic.ValidationError:
                log.warning("Malformed user in identity response: %r", raw_user)

        return response

    # -- password reset ----------------------------------------------------

    async def send_password_reset_otp(self, email: str) -> str:
        """Email a reset code; returns the user id the next steps need."""
        response = await self._client.send_password_reset_otp(email)

        user_id = None
        if isinstance(response, dict):
            user_id = response.get("user_id")
            if user_id is None and isinstance(response.get("user"), dict):
                user_id = response["user"].get("id")

        if not user_id:
            raise InvalidResponseError("No user id in the password reset response")

        return str(user_id)

    @staticmethod
    def _check_otp(code: str) -> str:
        code = (code or "").strip()
        if not OTP_PATTERN.fullmatch(code):
            raise OtpFormatError("The code must be exactly 4 digits")
        return code

    async def verify_password_otp(self, user_id: str, otp_code: str) -> None:
        await self._client.verify_password_otp(user_id, self._check_otp(otp_code))

    async def reset_password(self, user_id: str, password: str, otp_code: str) -> Any:
        response = await self._client.reset_password(
            user_id, password, self._check_otp(otp_code)
        )
        log.info("Password reset for user %s", user_id)
        return response
