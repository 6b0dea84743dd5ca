"""Domain errors raised by the banking services.

Each error carries the HTTP status the API layer answers with, so routers can
let them propagate to the handler registered in ``vaultbank.main``.
"""


class BankingError(Exception):
    """Base class for all domain errors."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BankingError):
    status_code = 400
    default_message = "Validation failed"


class NotFoundError(BankingError):
    status_code = 404
    default_message = "Not found"


class UserNotFound(NotFoundError):
    default_message = "User not found"


class AccountNotFound(NotFoundError):
    default_message = "Account not found"


class TransactionNotFound(NotFoundError):
    default_message = "Transaction not found"


class InsufficientFunds(BankingError):
    status_code = 400
    default_message = "Insufficient balance for this transfer"


class InvalidStatusTransition(BankingError):
    status_code = 409

    def __init__(self, current: str, requested: str, message: str | None = None):
        self.current = current
        self.requested = requested
        super().__init__(message or f"Cannot change transaction status from {current} to {requested}")


class DuplicateKey(BankingError):
    status_code = 409
    default_message = "Record already exists"


class PersistenceFailure(BankingError):
    status_code = 500
    default_message = "Storage unavailable"


class AuthenticationError(BankingError):
    status_code = 401
    default_message = "Invalid credentials"


class AccountLocked(BankingError):
    status_code = 423
    default_message = "Account is temporarily locked due to too many failed login attempts"
