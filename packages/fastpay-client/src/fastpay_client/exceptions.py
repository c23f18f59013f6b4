from typing import Any


class ApiError(Exception):
    """Non-2xx response from the FastPay REST API."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        display_messages: list[dict[str, str]] | None = None,
    ):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or {}
        self.display_messages = display_messages or []
        super().__init__(f"API error {status_code} ({code}): {message}")

    @property
    def status(self) -> int:
        return self.status_code


class ApiTransportError(ApiError):
    """The request never produced a usable response (network down, bad JSON)."""

    def __init__(self, code: str, message: str):
        super().__init__(0, code, message)
