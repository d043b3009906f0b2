class UploadError(Exception):
    """Base exception for all upload-related errors."""


class UploadValidationError(UploadError):
    """Raised when an uploaded file fails the size or media type gate."""


class FileTooLargeError(UploadValidationError):
    """Raised when an uploaded file exceeds the size ceiling."""


class UnsupportedMediaTypeError(UploadValidationError):
    """Raised when an uploaded file's media type is not accepted."""


class EmptyFileError(UploadValidationError):
    """Raised when an uploaded file has no content."""


class ExtractionError(UploadError):
    """Raised when text extraction (native, rasterization or OCR) fails."""
