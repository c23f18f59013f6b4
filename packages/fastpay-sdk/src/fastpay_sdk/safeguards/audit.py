"""Append-only audit trail for money-movement intents.

Writes one JSON line per event to a JSONL file. The transfer workflow
records when a verification code was requested, when a commit was sent
and how it ended.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from fastpay_sdk.config import DATA_DIR

log = logging.getLogger(__name__)

DEFAULT_PATH = DATA_DIR / ".audit.jsonl"


class AuditLog:
    """Append-only JSONL audit logger for transfer workflow events."""

    def __init__(self, path: Path = DEFAULT_PATH) -> None:
        self._path = path

    def log(
        self,
        event_type: str,
        *,
        user_id: str | None = None,
        organisation_id: str | None = None,
        amount: Decimal | None = None,
        recipient: str | None = None,
        service_code: str | None = None,
        error: str | None = None,
    ) -> None:
        """Write a single audit event as a JSON line."""
        entry: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
        }
        if user_id is not None:
            entry["user_id"] = user_id
        if organisation_id is not None:
            entry["organisation_id"] = organisation_id
        if amount is not None:
            entry["amount"] = str(amount)
        if recipient is not None:
            entry["recipient"] = recipient
        if service_code is not None:
            entry["service_code"] = service_code
        if error is not None:
            entry["error"] = error

        with open(self._path, "a") as f:
            f.write(json.dumps(entry) + "\n")

        log.info("Audit: %s user=%s", event_type, user_id)
