from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager

from invoice_chat.ocr.exceptions import OcrEngineTerminatedError


class OcrEngineHandle(ABC):
    """A live recognition engine. Must be terminated exactly once when done."""

    def __init__(self) -> None:
        self._terminated = False

    @property
    def terminated(self) -> bool:
        return self._terminated

    def recognize(self, image_bytes: bytes) -> str:
        """Run OCR over an encoded raster image (PNG, JPEG).

        Returns:
            Recognized plain text. May be empty.

        Raises:
            OcrError: if recognition fails.
            OcrEngineTerminatedError: if the handle was already terminated.
        """
        if self._terminated:
            raise OcrEngineTerminatedError("OCR engine handle used after termination")
        return self._recognize(image_bytes)

    def terminate(self) -> None:
        """Release the underlying engine. Safe to call more than once."""
        if self._terminated:
            return
        self._terminated = True
        self._release()

    @abstractmethod
    def _recognize(self, image_bytes: bytes) -> str: ...

    def _release(self) -> None:
        """Free engine resources. Override when the engine holds any."""


class BaseOcrEngine(ABC):
    """Contract for OCR engines: hand out scoped handles."""

    @abstractmethod
    def open(self) -> OcrEngineHandle:
        """Start a recognition engine and return its handle."""

    @contextmanager
    def acquire(self) -> Generator[OcrEngineHandle, None, None]:
        """Yield a handle that is terminated on every exit path."""
        handle = self.open()
        try:
            yield handle
        finally:
            handle.terminate()
