"""Domain-specific exceptions for the finance ledger."""

class ValidationError(ValueError):
    """Raised when provided data does not meet validation requirements."""


class InsufficientFundsError(ValidationError):
    """Raised when a savings transfer exceeds the available balance or savings."""


class RecordNotFoundError(LookupError):
    """Raised when a transaction or category record cannot be located."""


class PersistenceError(IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""
