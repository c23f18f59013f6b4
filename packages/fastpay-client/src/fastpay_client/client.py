"""Async HTTP client for the FastPay REST API."""

import logging
from collections.abc import Callable
from typing import Any

import httpx
from fastpay_client.exceptions import ApiError, ApiTransportError


log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://agregateur-rest.onrender.com"


def _error_message(error: dict[str, Any]) -> str:
    """Pick the English display message, then any display message, then ``message``."""

    display = error.get("display_messages") or []

    if isinstance(display, list) and display:
        for msg in display:
            if isinstance(msg, dict) and msg.get("lang") == "en" and msg.get("value"):
                return msg["value"]

        first = display[0]
        if isinstance(first, dict) and first.get("value"):
            return first["value"]

    return error.get("message") or "An error occurred"


def error_from_response(resp: httpx.Response) -> ApiError:
    """Build an ApiError from a non-2xx response.

    Understands the ``{"error": {...}}`` envelope and a bare ``{code, message}``
    body; anything else is synthesized from the status line.
    """

    try:
        body = resp.json()
    except ValueError:
        body = None

    error: dict[str, Any] | None = None

    if isinstance(body, dict):
        if isinstance(body.get("error"), dict):
            error = body["error"]
        elif "code" in body and "message" in body:
            error = body

    if error is None:
        reason = resp.reason_phrase or f"HTTP {resp.status_code}"
        return ApiError(resp.status_code, "UNKNOWN_ERROR", reason)

    details = error.get("details")
    display = error.get("display_messages")

    return ApiError(
        resp.status_code,
        str(error.get("code") or "UNKNOWN_ERROR"),
        _error_message(error),
        details=details if isinstance(details, dict) else None,
        display_messages=display if isinstance(display, list) else None,
    )


class FastPayApiClient:
    """Client for the FastPay REST API.

    Every request carries ``Authorization: Bearer <token>`` when the token
    provider returns a token. Response bodies are returned as decoded JSON
    without any reshaping; list payloads are normalized by the SDK.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token_provider: Callable[[], str | None] | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Accept": "application/json"},
            timeout=timeout,
        )

    # -- low-level ---------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        token = self._token_provider() if self._token_provider else None

        if token:
            return {"Authorization": f"Bearer {token}"}

        return {}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            resp = await self._client.request(
                method,
                path,
                params=params or None,
                json=json,
                data=data,
                files=files or None,
                headers=self._headers(),
            )

        except httpx.RequestError as exc:
            log.warning("%s %s failed: %s", method, path, exc)
            raise ApiTransportError("NETWORK_ERROR", str(exc) or type(exc).__name__)

        if resp.status_code >= 400:
            error = error_from_response(resp)
            log.warning(
                "%s %s failed (HTTP %d): %s %s",
                method,
                path,
                resp.status_code,
                error.code,
                error.message,
            )
            raise error

        if not resp.content:
            return None

        try:
            return resp.json()

        except ValueError:
            raise ApiTransportError(
                "MALFORMED_RESPONSE", f"{method} {path} returned a non-JSON body"
            )

    @staticmethod
    def _paging(page: int | None, size: int | None) -> dict[str, Any]:
        return {"page": page, "size": size}

    # -- Auth operations --

    async def login(self, email: str, password: str) -> Any:
        return await self._request(
            "POST", "/api/auth/login", json={"email": email, "password": password}
        )

    async def logout(self) -> None:
        await self._request("POST", "/api/auth/logout")

    async def register(self, fullname: str, email: str, password: str) -> Any:
        return await self._request(
            "POST",
            "/api/auth/register",
            json={"fullname": fullname, "email": email, "password": password},
        )

    async def send_password_reset_otp(self, email: str) -> Any:
        return await self._request(
            "POST", "/api/auth/forgot-password/send-otp", json={"email": email}
        )

    async def verify_password_otp(self, user_id: str, otp_code: str) -> None:
        await self._request(
            "POST",
            "/api/auth/forgot-password/verify-otp",
            json={"user_id": user_id, "otp_code": otp_code},
        )

    async def reset_password(self, user_id: str, password: str, otp_code: str) -> Any:
        return await self._request(
            "PATCH",
            f"/api/auth/forgot-password/reset-password/{user_id}",
            json={"password": password, "otp_code": otp_code},
        )

    async def get_current_user(self) -> Any:
        return await self._request("GET", "/api/users/me")

    # -- User operations --

    async def get_user(self, user_id: str) -> Any:
        return await self._request("GET", f"/api/users/{user_id}")

    async def delete_user(self, user_id: str) -> Any:
        return await self._request("DELETE", f"/api/users/{user_id}")

    async def verify_identity(
        self, fullname: str, files: dict[str, Any] | None = None
    ) -> Any:
        """Submit KYC documents as multipart form data.

        ``files`` maps the form fields ``user_picture``, ``first_face`` and
        ``second_face`` to anything httpx accepts as an upload.
        """
        return await self._request(
            "POST",
            "/api/users/verify-identity",
            data={"fullname": fullname},
            files=files,
        )

    # -- Analytics operations --

    async def get_analytics_overview(self) -> Any:
        return await self._request("GET", "/api/analytics/overview")

    async def get_analytics_graph(self) -> Any:
        return await self._request("GET", "/api/analytics/graph")

    async def get_top_beneficiaries(self) -> Any:
        return await self._request("GET", "/api/analytics/top-beneficiaries")

    # -- Organisation operations --

    async def get_my_organisations(self) -> Any:
        return await self._request("GET", "/api/organisations/me")

    async def create_organisation(self, data: dict[str, Any]) -> Any:
        return await self._request("POST", "/api/organisations", json=data)

    async def update_organisation(self, organisation_id: str, data: dict[str, Any]) -> Any:
        return await self._request(
            "PATCH", f"/api/organisations/{organisation_id}", json=data
        )

    async def delete_organisation(self, organisation_id: str) -> Any:
        return await self._request("DELETE", f"/api/organisations/{organisation_id}")

    # -- Payment operations --

    async def list_payments(
        self,
        page: int | None = None,
        size: int | None = None,
        organisation_id: str | None = None,
    ) -> Any:
        params = self._paging(page, size)
        params["organisation_id"] = organisation_id

        return await self._request("GET", "/api/paiements", params=params)

    async def filter_payments(
        self,
        filters: dict[str, Any],
        page: int | None = None,
        size: int | None = None,
    ) -> Any:
        return await self._request(
            "POST",
            "/api/paiements/filter",
            params=self._paging(page, size),
            json=filters,
        )

    async def get_payment(self, payment_id: str) -> Any:
        return await self._request("GET", f"/api/paiements/{payment_id}")

    async def get_payment_by_ref(self, reference: str) -> Any:
        return await self._request("GET", f"/api/paiements/by-ref/{reference}")

    async def create_payment(self, data: dict[str, Any]) -> Any:
        return await self._request("POST", "/api/paiements/new-paiement", json=data)

    async def create_direct_payment(self, data: dict[str, Any]) -> Any:
        return await self._request(
            "POST", "/api/paiements/initialize-direct-paiement", json=data
        )

    async def delete_payment(self, payment_id: str) -> Any:
        return await self._request("DELETE", f"/api/paiements/{payment_id}")

    async def start_payment_execution(self, payment_id: str) -> Any:
        return await self._request(
            "PATCH", f"/api/paiements/{payment_id}/start-execution"
        )

    async def complete_payment(self, payment_id: str) -> Any:
        return await self._request("PATCH", f"/api/paiements/{payment_id}/complete")

    async def fail_payment(self, payment_id: str) -> Any:
        return await self._request("PATCH", f"/api/paiements/{payment_id}/fail")

    # -- Transfer operations --

    async def list_transfers(
        self,
        page: int | None = None,
        size: int | None = None,
        organisation_id: str | None = None,
    ) -> Any:
        params = self._paging(page, size)
        params["organisation_id"] = organisation_id

        return await self._request("GET", "/api/transferts", params=params)

    async def get_transfer(self, transfer_id: str) -> Any:
        return await self._request("GET", f"/api/transferts/{transfer_id}")

    async def request_transfer_otp(self) -> None:
        """Ask the server to send a transfer OTP to the authenticated user.

        Carries no body: the recipient of the code is decided server-side.
        """

        await self._request("POST", "/api/transferts/send-otp")

    async def initialize_transfer(self, data: dict[str, Any]) -> Any:
        return await self._request("POST", "/api/transferts/initialise", json=data)

    # -- Beneficiary operations --

    async def list_beneficiaries(
        self, page: int | None = None, size: int | None = None
    ) -> Any:
        return await self._request(
            "GET", "/api/beneficiaires", params=self._paging(page, size)
        )

    async def list_my_beneficiaries(
        self, page: int | None = None, size: int | None = None
    ) -> Any:
        return await self._request(
            "GET", "/api/beneficiaires/me", params=self._paging(page, size)
        )

    async def list_organisation_beneficiaries(
        self,
        organisation_id: str,
        page: int | None = None,
        size: int | None = None,
    ) -> Any:
        return await self._request(
            "GET",
            f"/api/beneficiaires/{organisation_id}",
            params=self._paging(page, size),
        )

    async def create_beneficiary(self, data: dict[str, Any]) -> Any:
        return await self._request("POST", "/api/beneficiaires", json=data)

    async def update_beneficiary(self, beneficiary_id: str, data: dict[str, Any]) -> Any:
        return await self._request(
            "PATCH", f"/api/beneficiaires/{beneficiary_id}", json=data
        )

    async def delete_beneficiary(self, beneficiary_id: str) -> Any:
        return await self._request("DELETE", f"/api/beneficiaires/{beneficiary_id}")

    # -- Country operations --

    async def list_countries(self) -> Any:
        return await self._request("GET", "/api/country")

    async def enable_country_transactions(self, country_id: str) -> Any:
        return await self._request(
            "PATCH", f"/api/country/{country_id}/enable-transactions"
        )

    async def disable_country_transactions(self, country_id: str) -> Any:
        return await self._request(
            "PATCH", f"/api/country/{country_id}/disable-transactions"
        )

    async def delete_country(self, country_id: str) -> Any:
        return await self._request("DELETE", f"/api/country/{country_id}")

    # -- Mobile service operations --

    async def list_mobile_services(self) -> Any:
        return await self._request("GET", "/api/services-mobile")

    async def toggle_mobile_service(self, service_id: str) -> Any:
        return await self._request(
            "PATCH", f"/api/services-mobile/enable-or-disable/{service_id}"
        )

    # -- Grouped payment operations --

    async def list_grouped_payments(
        self,
        date_from: int,
        date_to: int,
        page: int | None = None,
        size: int | None = None,
        organisation_id: str | None = None,
    ) -> Any:
        params = self._paging(page, size)
        params.update(
            organisation_id=organisation_id,
            dateFrom=date_from,
            dateTo=date_to,
        )

        return await self._request("GET", "/grouped-payments", params=params)

    async def get_grouped_payment_by_ref(self, reference: str) -> Any:
        return await self._request("GET", f"/grouped-payments/by-ref/{reference}")

    async def list_grouped_payment_transactions(
        self,
        grouped_payment_id: str,
        filters: dict[str, Any],
        page: int | None = None,
        size: int | None = None,
    ) -> Any:
        params = self._paging(page, size)
        params["grouped_payment_id"] = grouped_payment_id
        params.update(filters)

        return await self._request("GET", "/grouped-payments/payments", params=params)

    async def create_grouped_payment(self, data: dict[str, Any]) -> Any:
        return await self._request("POST", "/grouped-payments/new-payment", json=data)

    async def delete_grouped_payment(self, grouped_payment_id: str) -> Any:
        return await self._request("DELETE", f"/grouped-payments/{grouped_payment_id}")

    # -- API key operations --

    async def list_api_keys(self, organisation_id: str) -> Any:
        return await self._request("GET", f"/api-keys/{organisation_id}/api-key")

    async def generate_api_key(self, organisation_id: str, data: dict[str, Any]) -> Any:
        return await self._request(
            "POST", f"/api-keys/{organisation_id}/generate", json=data
        )

    async def regenerate_api_key_secret(self, api_key_id: str) -> Any:
        return await self._request("GET", f"/api-keys/{api_key_id}/regenerate")

    async def delete_api_key(self, api_key_id: str) -> Any:
        return await self._request("DELETE", f"/api-keys/{api_key_id}")

    # -- Webhook operations --

    async def list_webhooks(self, api_key_id: str) -> Any:
        return await self._request("GET", f"/api-keys/{api_key_id}/webhooks")

    async def create_webhook(self, api_key_id: str, data: dict[str, Any]) -> Any:
        return await self._request(
            "POST", f"/api-keys/{api_key_id}/webhooks", json=data
        )

    async def update_webhook(
        self, api_key_id: str, webhook_id: str, data: dict[str, Any]
    ) -> Any:
        return await self._request(
            "PATCH", f"/api-keys/{api_key_id}/webhooks/{webhook_id}", json=data
        )

    async def delete_webhook(self, api_key_id: str, webhook_id: str) -> Any:
        return await self._request(
            "DELETE", f"/api-keys/{api_key_id}/webhooks/{webhook_id}"
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "FastPayApiClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
