class FastPayError(Exception):
    """Base exception for SDK errors."""


class ValidationError(FastPayError):
    """Input rejected locally, before any network call."""


class DraftValidationError(ValidationError):
    """A transfer draft is missing or has inconsistent fields."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class OtpFormatError(ValidationError):
    """The OTP code is not exactly four digits."""


class WorkflowStateError(FastPayError):
    """Transfer workflow operation called from the wrong state."""


class OrganisationNotFoundError(FastPayError):
    """The organisation id is not in the caller's organisation list."""

    def __init__(self, organisation_id: str):
        self.organisation_id = organisation_id
        super().__init__(f"Unknown organisation: {organisation_id}")


class InvalidResponseError(FastPayError):
    """The server did not return a payload the operation depends on."""
