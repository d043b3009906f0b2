class AccountingError(Exception):
    """Base exception for token accounting errors."""


class UnsupportedModelError(AccountingError):
    """Raised when a model key has no registered token encoding."""
