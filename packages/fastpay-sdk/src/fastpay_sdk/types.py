from enum import StrEnum


class TransactionStatus(StrEnum):
    INIT = "INIT"
    INEXECUTION = "INEXECUTION"
    PENDING = "PENDING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"
    TIMEOUT = "TIMEOUT"


class TransactionType(StrEnum):
    PAYMENT = "PAYMENT"
    DIRECT_PAYMENT = "DIRECT_PAYMENT"
    TRANSFERT = "TRANSFERT"
    RECHARGE = "RECHARGE"


class UserRole(StrEnum):
    ADMIN = "ADMIN"
    MERCHANT = "MERCHANT"
    CLIENT = "CLIENT"


class WorkflowState(StrEnum):
    COMPOSE = "COMPOSE"
    REQUESTING_OTP = "REQUESTING_OTP"
    AWAITING_OTP = "AWAITING_OTP"
    COMMITTING = "COMMITTING"
    DONE = "DONE"


class ContextStatus(StrEnum):
    UNINITIALIZED = "UNINITIALIZED"
    HYDRATED = "HYDRATED"
    LOADED = "LOADED"


class WebhookAction(StrEnum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
