from collections.abc import Iterable

from invoice_chat.upload.exceptions import (
    EmptyFileError,
    FileTooLargeError,
    UnsupportedMediaTypeError,
)
from invoice_chat.upload.models import UploadedDocument

DEFAULT_MAX_SIZE_BYTES = 5 * 1024 * 1024
DEFAULT_ALLOWED_MEDIA_TYPES = ("image/jpeg", "image/png", "application/pdf")


class FormatClassifier:
    """Validation gate for uploaded blobs: size ceiling, then media type."""

    def __init__(
        self,
        max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
        allowed_media_types: Iterable[str] = DEFAULT_ALLOWED_MEDIA_TYPES,
    ) -> None:
        self._max_size_bytes = max_size_bytes
        self._allowed_media_types = frozenset(allowed_media_types)

    def classify(
        self,
        content: bytes,
        media_type: str | None,
        original_name: str | None = None,
    ) -> UploadedDocument:
        """Validate a blob and wrap it as an UploadedDocument.

        Raises:
            FileTooLargeError: if the blob exceeds the size ceiling.
            UnsupportedMediaTypeError: if the media type is not accepted.
            EmptyFileError: if the blob has no content.
        """
        size = len(content)
        if size > self._max_size_bytes:
            limit_mb = self._max_size_bytes / (1024 * 1024)
            raise FileTooLargeError(f"File size must not exceed {limit_mb:g}MB")
        if media_type not in self._allowed_media_types:
            allowed = ", ".join(sorted(self._allowed_media_types))
            raise UnsupportedMediaTypeError(
                f"File type '{media_type}' is not supported. Allowed: {allowed}"
            )
        if size == 0:
            raise EmptyFileError("File is empty")
        return UploadedDocument(
            content=content,
            media_type=media_type,
            size_bytes=size,
            original_name=original_name or "upload",
        )
