from fastpay_sdk.stores.analytics import AnalyticsStore
from fastpay_sdk.stores.base import Pagination, ResourceCollection, ResourceStore
from fastpay_sdk.stores.beneficiaries import BeneficiariesStore
from fastpay_sdk.stores.countries import CountriesStore
from fastpay_sdk.stores.grouped_payments import GroupedPaymentsStore
from fastpay_sdk.stores.mobile_services import MobileServicesStore
from fastpay_sdk.stores.payments import PaymentsStore
from fastpay_sdk.stores.settings import (
    ApiKeysStore,
    SettingsStore,
    WebhooksStore,
)
from fastpay_sdk.stores.transfers import TransfersStore
from fastpay_sdk.stores.users import UsersStore

__all__ = [
    "AnalyticsStore",
    "ApiKeysStore",
    "BeneficiariesStore",
    "CountriesStore",
    "GroupedPaymentsStore",
    "MobileServicesStore",
    "Pagination",
    "PaymentsStore",
    "ResourceCollection",
    "ResourceStore",
    "SettingsStore",
    "TransfersStore",
    "UsersStore",
    "WebhooksStore",
]
