from fastpay_sdk.safeguards.audit import AuditLog
