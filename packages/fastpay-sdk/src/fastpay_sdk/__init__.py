from fastpay_sdk.config import FastPayConfig, get_config
from fastpay_sdk.dashboard import Dashboard
from fastpay_sdk.exceptions import (
    DraftValidationError,
    FastPayError,
    InvalidResponseError,
    OrganisationNotFoundError,
    OtpFormatError,
    ValidationError,
    WorkflowStateError,
)
from fastpay_sdk.normalizer import Page, classify, normalize_page
from fastpay_sdk.organisations import OrganisationContext
from fastpay_sdk.registry import StoreRegistry
from fastpay_sdk.session import Session
from fastpay_sdk.storage import StateStorage
from fastpay_sdk.workflow import TransferWorkflow
