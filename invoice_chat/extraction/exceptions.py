class StructuredOutputError(Exception):
    """Base exception for structured data that cannot be read from model output."""


class NoStructuredBlockError(StructuredOutputError):
    """Raised when the model output carries no fenced JSON block."""


class MalformedStructuredBlockError(StructuredOutputError):
    """Raised when the fenced JSON block cannot be parsed into an invoice."""
