class NexaBankError(Exception):
    """Base class for failures surfaced to API callers as kind + message."""

    kind = "Error"
    status_code = 400


class InvalidCredentialError(NexaBankError):
    """Raised when a password, PIN or one-time code does not verify."""

    kind = "InvalidCredential"
    status_code = 401


class NotFoundError(NexaBankError):
    kind = "NotFound"
    status_code = 404


class AccountNotFoundError(NotFoundError):
    """Raised when an account id is missing from the store."""


class TransactionNotFoundError(NotFoundError):
    """Raised when a transaction is missing or owned by another account."""


class CatalogEntryNotFoundError(NotFoundError):
    """Raised by catalog lookups for unknown ids."""


class DuplicateIdentityError(NexaBankError):
    """Raised when email, phone or BVN is already registered."""

    kind = "DuplicateIdentity"
    status_code = 409


class InvalidRecipientError(NexaBankError):
    kind = "InvalidRecipient"


class InvalidProviderError(NexaBankError):
    kind = "InvalidProvider"


class InvalidPlanError(NexaBankError):
    kind = "InvalidPlan"


class InvalidPhoneNumberError(NexaBankError):
    kind = "InvalidPhoneNumber"


class BelowMinimumError(NexaBankError):
    kind = "BelowMinimum"


class InsufficientFundsError(NexaBankError):
    """Raised when a debit would drop balance below zero."""

    kind = "InsufficientFunds"


class SessionExpiredError(NexaBankError):
    kind = "SessionExpired"
    status_code = 401


class UnauthorizedError(NexaBankError):
    kind = "Unauthorized"
    status_code = 401


class ReferenceUnavailableError(NexaBankError):
    """Raised when no unique reference or account number could be allocated."""

    kind = "ReferenceUnavailable"
    status_code = 503
