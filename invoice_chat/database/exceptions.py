class PersistenceError(Exception):
    """Base exception for database operations."""


class ChatNotFoundError(PersistenceError):
    """Raised when a chat cannot be found in the database."""


class InvoiceNotFoundError(PersistenceError):
    """Raised when an invoice cannot be found in the database."""
