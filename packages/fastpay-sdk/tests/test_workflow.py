"""Unit tests for fastpay_sdk.workflow."""

import asyncio
import json
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastpay_client import ApiError

from fastpay_sdk.exceptions import (
    DraftValidationError,
    OtpFormatError,
    WorkflowStateError,
)
from fastpay_sdk.models import Beneficiary, TransferDraft
from fastpay_sdk.safeguards import AuditLog
from fastpay_sdk.stores import TransfersStore
from fastpay_sdk.types import WorkflowState
from fastpay_sdk.workflow import TransferWorkflow, validate_draft

AWA = Beneficiary(id="b1", name="Awa Koné", phone="0700000001")


def manual_draft(**overrides) -> TransferDraft:
    fields = dict(
        amount=Decimal("5000"),
        service_code="OM_CI",
        recipient_name="Moussa",
        recipient_phone="0500000002",
    )
    fields.update(overrides)
    return TransferDraft(**fields)


@pytest.fixture
def workflow(api: AsyncMock) -> TransferWorkflow:
    api.list_transfers.return_value = []
    return TransferWorkflow(TransfersStore(api))


def awaiting(workflow: TransferWorkflow, draft: TransferDraft | None = None) -> None:
    asyncio.run(workflow.submit_draft(draft or manual_draft(), organisation_id="org-1"))
    assert workflow.state == WorkflowState.AWAITING_OTP


class TestValidateDraft:
    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), "abc", Decimal("NaN")])
    def test_amount_must_be_positive(self, amount) -> None:
        with pytest.raises(DraftValidationError) as exc_info:
            validate_draft(manual_draft(amount=amount))
        assert exc_info.value.field == "amount"

    def test_service_code_required(self) -> None:
        with pytest.raises(DraftValidationError) as exc_info:
            validate_draft(manual_draft(service_code="  "))
        assert exc_info.value.field == "service_code"

    def test_manual_recipient_requires_name_and_phone(self) -> None:
        with pytest.raises(DraftValidationError) as exc_info:
            validate_draft(manual_draft(recipient_phone=""))
        assert exc_info.value.field == "recipient_phone"

    def test_beneficiary_fills_recipient(self) -> None:
        draft = TransferDraft(amount=Decimal("100"), service_code="OM_CI", beneficiary_id="b1")
        checked = validate_draft(draft, [AWA])
        assert checked.recipient_name == "Awa Koné"
        assert checked.recipient_phone == "0700000001"

    def test_beneficiary_and_manual_are_exclusive(self) -> None:
        draft = manual_draft(beneficiary_id="b1")
        with pytest.raises(DraftValidationError) as exc_info:
            validate_draft(draft, [AWA])
        assert exc_info.value.field == "beneficiary_id"

    def test_unknown_beneficiary(self) -> None:
        draft = TransferDraft(amount=Decimal("100"), service_code="OM_CI", beneficiary_id="zz")
        with pytest.raises(DraftValidationError):
            validate_draft(draft, [AWA])

    def test_float_amount_converted_exactly(self) -> None:
        assert validate_draft(manual_draft(amount=0.1)).amount == Decimal("0.1")


class TestSubmitDraft:
    def test_requests_otp_without_draft_payload(
        self, workflow: TransferWorkflow, api: AsyncMock
    ) -> None:
        awaiting(workflow)

        api.request_transfer_otp.assert_awaited_once_with()
        api.initialize_transfer.assert_not_awaited()
        assert workflow.draft.recipient_name == "Moussa"
        assert workflow.draft.otp_requested is True

    def test_invalid_draft_makes_no_request(
        self, workflow: TransferWorkflow, api: AsyncMock
    ) -> None:
        with pytest.raises(DraftValidationError):
            asyncio.run(workflow.submit_draft(manual_draft(amount=Decimal("0"))))

        api.request_transfer_otp.assert_not_awaited()
        assert workflow.state == WorkflowState.COMPOSE

    def test_otp_failure_keeps_draft(
        self, workflow: TransferWorkflow, api: AsyncMock
    ) -> None:
        api.request_transfer_otp.side_effect = ApiError(429, "TOO_MANY", "slow down")

        with pytest.raises(ApiError):
            asyncio.run(workflow.submit_draft(manual_draft()))

        assert workflow.state == WorkflowState.COMPOSE
        assert workflow.draft.recipient_phone == "0500000002"

    def test_only_from_compose(self, workflow: TransferWorkflow) -> None:
        awaiting(workflow)
        with pytest.raises(WorkflowStateError):
            asyncio.run(workflow.submit_draft(manual_draft()))


class TestConfirmOtp:
    def test_commit_body_and_refresh(
        self, workflow: TransferWorkflow, api: AsyncMock
    ) -> None:
        api.initialize_transfer.return_value = {"id": "t-9"}
        awaiting(workflow)

        result = asyncio.run(workflow.confirm_otp("4821"))

        assert result == {"id": "t-9"}
        api.initialize_transfer.assert_awaited_once_with(
            {
                "amount": 5000,
                "name": "Moussa",
                "phone": "0500000002",
                "service_mobile_code": "OM_CI",
                "otp_code": "4821",
            }
        )
        assert workflow.state == WorkflowState.DONE
        assert workflow.draft is None
        api.list_transfers.assert_awaited_once_with(1, 10, "org-1")

    def test_decimal_amount_sent_as_number(
        self, workflow: TransferWorkflow, api: AsyncMock
    ) -> None:
        awaiting(workflow, manual_draft(amount=Decimal("1500.50")))
        asyncio.run(workflow.confirm_otp("1234"))
        assert api.initialize_transfer.await_args.args[0]["amount"] == 1500.5

    @pytest.mark.parametrize("code", ["12", "12345", "12a4", "", "١٢٣٤"])
    def test_bad_code_rejected_locally(
        self, workflow: TransferWorkflow, api: AsyncMock, code: str
    ) -> None:
        awaiting(workflow)

        with pytest.raises(OtpFormatError):
            asyncio.run(workflow.confirm_otp(code))

        api.initialize_transfer.assert_not_awaited()
        assert workflow.state == WorkflowState.AWAITING_OTP

    def test_commit_failure_keeps_draft_for_retry(
        self, workflow: TransferWorkflow, api: AsyncMock
    ) -> None:
        awaiting(workflow)
        api.initialize_transfer.side_effect = [
            ApiError(400, "INVALID_OTP", "Invalid code"),
            {"id": "t-1"},
        ]

        with pytest.raises(ApiError):
            asyncio.run(workflow.confirm_otp("0000"))

        assert workflow.state == WorkflowState.AWAITING_OTP
        assert workflow.draft.amount == Decimal("5000")
        assert workflow.draft.recipient_name == "Moussa"

        asyncio.run(workflow.confirm_otp("1111"))
        assert workflow.state == WorkflowState.DONE

    def test_requires_awaiting_state(self, workflow: TransferWorkflow) -> None:
        with pytest.raises(WorkflowStateError):
            asyncio.run(workflow.confirm_otp("1234"))

    def test_no_double_submit(self, workflow: TransferWorkflow, api: AsyncMock) -> None:
        awaiting(workflow)
        errors = []

        async def run() -> None:
            gate = asyncio.Event()

            async def initialize_transfer(body):
                await gate.wait()
                return {"id": "t-1"}

            api.initialize_transfer.side_effect = initialize_transfer
            first = asyncio.create_task(workflow.confirm_otp("1234"))
            await asyncio.sleep(0)
            try:
                await workflow.confirm_otp("1234")
            except WorkflowStateError as e:
                errors.append(e)
            gate.set()
            await first

        asyncio.run(run())

        assert len(errors) == 1
        assert api.initialize_transfer.await_count == 1
        assert workflow.state == WorkflowState.DONE


class TestBackAndCancel:
    def test_back_keeps_draft(self, workflow: TransferWorkflow) -> None:
        awaiting(workflow)

        workflow.back()

        assert workflow.state == WorkflowState.COMPOSE
        assert workflow.draft.recipient_name == "Moussa"
        assert workflow.draft.otp_requested is False

    def test_resubmit_after_back_with_beneficiary(
        self, workflow: TransferWorkflow, api: AsyncMock
    ) -> None:
        draft = TransferDraft(amount=Decimal("100"), service_code="OM_CI", beneficiary_id="b1")
        asyncio.run(workflow.submit_draft(draft, [AWA]))
        workflow.back()

        asyncio.run(workflow.submit_draft(workflow.draft, [AWA]))

        assert workflow.state == WorkflowState.AWAITING_OTP
        assert api.request_transfer_otp.await_count == 2

    def test_cancel_from_awaiting(self, workflow: TransferWorkflow) -> None:
        awaiting(workflow)
        workflow.cancel()
        assert workflow.state == WorkflowState.COMPOSE
        assert workflow.draft is None

    def test_cancel_after_done(self, workflow: TransferWorkflow) -> None:
        awaiting(workflow)
        asyncio.run(workflow.confirm_otp("1234"))
        workflow.cancel()
        assert workflow.state == WorkflowState.COMPOSE
        assert workflow.result is None

    def test_back_only_from_awaiting(self, workflow: TransferWorkflow) -> None:
        with pytest.raises(WorkflowStateError):
            workflow.back()

    def test_reset_discards_everything(self, workflow: TransferWorkflow) -> None:
        awaiting(workflow)
        workflow.reset()
        assert workflow.state == WorkflowState.COMPOSE
        assert workflow.draft is None


class TestAudit:
    def read(self, path: Path) -> list[dict]:
        return [json.loads(line) for line in path.read_text().splitlines()]

    def test_events_written(self, api: AsyncMock, tmp_path: Path) -> None:
        path = tmp_path / "audit.jsonl"
        api.list_transfers.return_value = []
        api.initialize_transfer.side_effect = [ApiError(400, "INVALID_OTP", "bad"), {}]
        workflow = TransferWorkflow(
            TransfersStore(api), audit=AuditLog(path), user_id=lambda: "u-1"
        )

        awaiting(workflow)
        with pytest.raises(ApiError):
            asyncio.run(workflow.confirm_otp("0000"))
        asyncio.run(workflow.confirm_otp("1234"))

        events = self.read(path)
        assert [e["event_type"] for e in events] == [
            "otp_requested",
            "transfer_failed",
            "transfer_committed",
        ]
        assert events[0]["user_id"] == "u-1"
        assert events[0]["organisation_id"] == "org-1"
        assert events[0]["amount"] == "5000"
        assert events[1]["error"].startswith("API error 400")

    def test_cancel_recorded(self, api: AsyncMock, tmp_path: Path) -> None:
        path = tmp_path / "audit.jsonl"
        workflow = TransferWorkflow(TransfersStore(api), audit=AuditLog(path))

        awaiting(workflow)
        workflow.cancel()

        assert [e["event_type"] for e in self.read(path)] == [
            "otp_requested",
            "transfer_cancelled",
        ]
