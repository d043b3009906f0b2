class OcrError(Exception):
    """Raised when optical character recognition fails."""


class OcrEngineTerminatedError(OcrError):
    """Raised when a terminated engine handle is used again."""
