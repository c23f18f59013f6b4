"""Two-step, OTP-confirmed mobile money transfer.

A transfer is composed and validated locally, then the server is asked to
send a one-time code to the signed-in user. Only when that code is entered
is the transfer committed, with the code attached. The draft lives in
memory between the two steps and is never sent before the commit.

    COMPOSE -> REQUESTING_OTP -> AWAITING_OTP -> COMMITTING -> DONE
"""

import logging
import re
from collections.abc import Callable, Iterable
from decimal import Decimal, InvalidOperation
from typing import Any

from fastpay_sdk.exceptions import (
    DraftValidationError,
    OtpFormatError,
    WorkflowStateError,
)
from fastpay_sdk.models import Beneficiary, TransferDraft
from fastpay_sdk.safeguards.audit import AuditLog
from fastpay_sdk.stores.transfers import TransfersStore
from fastpay_sdk.types import WorkflowState

log = logging.getLogger(__name__)

OTP_PATTERN = re.compile(r"[0-9]{4}")

_CANCELLABLE = (WorkflowState.COMPOSE, WorkflowState.AWAITING_OTP, WorkflowState.DONE)


def _json_amount(amount: Decimal) -> int | float:
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def validate_draft(
    draft: TransferDraft, beneficiaries: Iterable[Beneficiary] = ()
) -> TransferDraft:
    """Check a draft and return it with the recipient filled in.

    A draft names either a known beneficiary or a recipient entered by hand,
    never both.
    """
    try:
        amount = Decimal(str(draft.amount))
    except (InvalidOperation, TypeError, ValueError):
        raise DraftValidationError("amount", "Amount must be a number") from None

    if not amount.is_finite() or amount <= 0:
        raise DraftValidationError("amount", "Amount must be greater than zero")

    service_code = (draft.service_code or "").strip()
    if not service_code:
        raise DraftValidationError("service_code", "Choose a mobile money service")

    name = (draft.recipient_name or "").strip()
    phone = (draft.recipient_phone or "").strip()

    if draft.beneficiary_id:
        beneficiary = next(
            (b for b in beneficiaries if b.id == draft.beneficiary_id), None
        )
        if beneficiary is None:
            raise DraftValidationError("beneficiary_id", "Unknown beneficiary")

        # a resubmitted draft carries the beneficiary's own details
        if (name or phone) and (name, phone) != (beneficiary.name, beneficiary.phone):
            raise DraftValidationError(
                "beneficiary_id",
                "Pick a beneficiary or enter a recipient, not both",
            )

        name, phone = beneficiary.name, beneficiary.phone

    else:
        if not name:
            raise DraftValidationError("recipient_name", "Recipient name is required")
        if not phone:
            raise DraftValidationError(
                "recipient_phone", "Recipient phone is required"
            )

    return TransferDraft(
        amount=amount,
        service_code=service_code,
        recipient_name=name,
        recipient_phone=phone,
        beneficiary_id=draft.beneficiary_id,
    )


class TransferWorkflow:
    name = "transfer workflow"

    def __init__(
        self,
        transfers: TransfersStore,
        *,
        audit: AuditLog | None = None,
        user_id: Callable[[], str | None] | None = None,
    ) -> None:
        self._transfers = transfers
        self._audit = audit
        self._user_id = user_id
        self.state = WorkflowState.COMPOSE
        self.draft: TransferDraft | None = None
        self.organisation_id: str | None = None
        self.result: Any = None

    def _record(self, event_type: str, draft: TransferDraft, **extra: Any) -> None:
        if self._audit is None:
            return
        self._audit.log(
            event_type,
            user_id=self._user_id() if self._user_id else None,
            organisation_id=self.organisation_id,
            amount=draft.amount,
            recipient=draft.recipient_phone,
            service_code=draft.service_code,
            **extra,
        )

    def _require(self, *states: WorkflowState) -> None:
        if self.state not in states:
            raise WorkflowStateError(
                f"Not allowed while the transfer is {self.state.value}"
            )

    async def submit_draft(
        self,
        draft: TransferDraft,
        beneficiaries: Iterable[Beneficiary] = (),
        *,
        organisation_id: str | None = None,
    ) -> None:
        """Validate the draft and ask the server for an OTP.

        Invalid drafts fail before any request is made. If the OTP request
        fails the draft is kept and the workflow goes back to COMPOSE.
        """
        self._require(WorkflowState.COMPOSE)

        checked = validate_draft(draft, beneficiaries)
        self.draft = checked
        self.organisation_id = organisation_id
        self.state = WorkflowState.REQUESTING_OTP

        try:
            await self._transfers.request_otp()
        except Exception:
            if self.draft is checked:
                self.state = WorkflowState.COMPOSE
            raise

        if self.draft is not checked:
            log.info("Workflow was reset while requesting an OTP")
            return

        checked.otp_requested = True
        self.state = WorkflowState.AWAITING_OTP
        self._record("otp_requested", checked)
        log.info(
            "OTP requested for transfer of %s to %s",
            checked.amount,
            checked.recipient_phone,
        )

    async def resend_otp(self) -> None:
        self._require(WorkflowState.AWAITING_OTP)
        await self._transfers.request_otp()
        log.info("OTP re-sent")

    def commit_body(self, otp_code: str) -> dict[str, Any]:
        if self.draft is None:
            raise WorkflowStateError("No transfer to commit")
        return {
            "amount": _json_amount(self.draft.amount),
            "name": self.draft.recipient_name,
            "phone": self.draft.recipient_phone,
            "service_mobile_code": self.draft.service_code,
            "otp_code": otp_code,
        }

    async def confirm_otp(self, code: str) -> Any:
        """Commit the held transfer with the code the user received."""
        self._require(WorkflowState.AWAITING_OTP)
        if self.draft is None:
            raise WorkflowStateError("No transfer is waiting for an OTP")

        code = (code or "").strip()
        if not OTP_PATTERN.fullmatch(code):
            raise OtpFormatError("The code must be exactly 4 digits")

        draft = self.draft
        body = self.commit_body(code)
        self.state = WorkflowState.COMMITTING

        try:
            result = await self._transfers.commit(body)
        except Exception as exc:
            if self.draft is draft:
                self.state = WorkflowState.AWAITING_OTP
            self._record("transfer_failed", draft, error=str(exc))
            raise

        self._record("transfer_committed", draft)

        if self.draft is not draft:
            log.info("Workflow was reset while committing")
            return result

        self.draft = None
        self.result = result
        self.state = WorkflowState.DONE
        log.info("Transfer of %s to %s committed", draft.amount, draft.recipient_phone)

        await self._transfers.fetch(organisation_id=self.organisation_id)
        return result

    def back(self) -> None:
        """Return to COMPOSE from the code step, keeping the draft for editing."""
        self._require(WorkflowState.AWAITING_OTP)
        if self.draft is not None:
            self.draft.otp_requested = False
        self.state = WorkflowState.COMPOSE

    def cancel(self) -> None:
        """Abandon the transfer and start over."""
        self._require(*_CANCELLABLE)

        if self.draft is not None and self.draft.otp_requested:
            self._record("transfer_cancelled", self.draft)
            log.info("Transfer to %s cancelled", self.draft.recipient_phone)

        self.draft = None
        self.result = None
        self.organisation_id = None
        self.state = WorkflowState.COMPOSE

    def reset(self) -> None:
        """Discard any transfer in progress, whatever its state."""
        self.draft = None
        self.result = None
        self.organisation_id = None
        self.state = WorkflowState.COMPOSE
