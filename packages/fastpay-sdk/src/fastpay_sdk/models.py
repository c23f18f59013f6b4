from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fastpay_sdk.types import TransactionStatus, TransactionType, WebhookAction


class Entity(BaseModel):
    """Server entity; unknown fields are kept as extras."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str


# -- entities ------------------------------------------------------------------


class Organisation(Entity):
    libelle: str = ""
    web_site: str = ""
    description: str | None = None


class Payment(Entity):
    amount: float = 0
    reference: str | None = None
    description: str | None = None
    status: str | None = None
    transaction_type: str | None = None
    launch_url: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")


class Transfer(Entity):
    amount: float = 0
    name: str = ""
    phone: str = ""
    service_mobile_code: str = ""
    status: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")


class Beneficiary(Entity):
    name: str
    phone: str
    country_id: str | None = None
    code_phone: str | None = None


class GroupedPayment(Entity):
    reference: str | None = None
    reason: str | None = None
    launch_url: str | None = None
    currency: str | None = None
    when_created: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")


class MobileService(Entity):
    name: str
    country: str | None = None
    code_prefix: str | None = None
    api_endpoint: str | None = None
    is_active: bool = Field(default=False, alias="isActive")


class Country(Entity):
    code_iso2: str | None = Field(default=None, alias="codeIso2")
    libelle: str = ""
    transactions_enabled: bool = Field(default=False, alias="transactionsEnabled")
    auth_enabled: bool = Field(default=False, alias="authEnabled")


class ApiKey(Entity):
    title: str = ""
    description: str | None = None
    key: str | None = None
    secret: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")


class Webhook(Entity):
    link: str
    title: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")


class User(Entity):
    fullname: str = ""
    email: str = ""
    phone: str | None = None
    role: str | None = None
    status: str | None = None
    kyc_status: str | None = None


class LoginResponse(BaseModel):
    user: User
    auth_token: str
    expire_at: str | None = None


class GroupedPaymentReceipt(BaseModel):
    currency: str
    when_created: str
    launch_url: str
    reference: str
    reason: str | None = None


class AnalyticsOverview(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    total_transactions: int = Field(0, alias="totalTransactions")
    total_amount: Decimal = Field(Decimal(0), alias="totalAmount")
    successful_transactions: int = Field(0, alias="successfulTransactions")
    failed_transactions: int = Field(0, alias="failedTransactions")
    commissions: Decimal = Decimal(0)


class AnalyticsGraph(BaseModel):
    """Chart series; the point shape is up to the server."""

    model_config = ConfigDict(extra="allow")

    data: list[dict[str, Any]] = Field(default_factory=list)


class TopBeneficiaries(BaseModel):
    model_config = ConfigDict(extra="allow")

    beneficiaries: list[dict[str, Any]] = Field(default_factory=list)


# -- inputs ------------------------------------------------------------------


class Input(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NewPayment(Input):
    amount: float = Field(gt=0)
    description: str = Field(min_length=1)
    organisation_id: str | None = None
    extra_data: dict[str, Any] | None = None


class NewDirectPayment(NewPayment):
    phone: str = Field(min_length=1)
    service_mobile_code: str | None = None


class PaymentFilter(Input):
    transaction_type: TransactionType
    status: TransactionStatus
    date_from: int = Field(alias="dateFrom")
    date_to: int = Field(alias="dateTo")


class NewOrganisation(Input):
    libelle: str = Field(min_length=1)
    web_site: str = Field(min_length=1)
    description: str | None = None


class OrganisationUpdate(Input):
    description: str | None = None


class NewApiKey(Input):
    title: str = Field(min_length=1)
    description: str | None = None


class WebhookInput(Input):
    link: str = Field(min_length=1)
    title: str | None = None


class NewBeneficiary(Input):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    country_id: str = Field(min_length=1)
    code_phone: str | None = None


class BeneficiaryUpdate(Input):
    name: str | None = None


class NewGroupedPayment(Input):
    reason: str = Field(min_length=1)
    organisation_id: str | None = None


# -- workflow records -----------------------------------------------------------


@dataclass
class TransferDraft:
    """Transfer intent held between the compose and commit steps.

    Either ``beneficiary_id`` names a known beneficiary, or
    ``recipient_name`` and ``recipient_phone`` are entered by hand.
    """

    amount: Decimal
    service_code: str
    recipient_name: str = ""
    recipient_phone: str = ""
    beneficiary_id: str | None = None
    otp_requested: bool = False


@dataclass
class WebhookSaveResult:
    action: WebhookAction
    webhook_id: str | None = None
    message: str = ""
    response: Any = field(default=None, repr=False)
