import io

import pytesseract
from PIL import Image

from invoice_chat.logging.logger import Log
from invoice_chat.ocr.base import BaseOcrEngine, OcrEngineHandle
from invoice_chat.ocr.exceptions import OcrError


class TesseractHandle(OcrEngineHandle):
    """Runs Tesseract through pytesseract, one subprocess per image."""

    def __init__(self, *, language: str, timeout_seconds: int) -> None:
        super().__init__()
        self._language = language
        self._timeout_seconds = timeout_seconds
        self._pages = 0

    def _recognize(self, image_bytes: bytes) -> str:
        try:
            image = Image.open(io.BytesIO(image_bytes))
            # open is lazy, truncated data only fails on load
            image.load()
        except (OSError, Image.DecompressionBombError) as exc:
            raise OcrError(f"Image could not be decoded: {exc}") from exc
        try:
            with image:
                text = pytesseract.image_to_string(
                    image,
                    lang=self._language,
                    timeout=self._timeout_seconds,
                )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as exc:
            raise OcrError(f"Image OCR recognition failed: {exc}") from exc
        except RuntimeError as exc:
            # pytesseract signals its timeout with a bare RuntimeError
            raise OcrError(f"Image OCR recognition timed out: {exc}") from exc
        self._pages += 1
        return text or ""

    def _release(self) -> None:
        Log.debug(f"Tesseract handle terminated after {self._pages} images")


class TesseractEngine(BaseOcrEngine):
    """OCR engine backed by a local Tesseract installation."""

    def __init__(
        self,
        *,
        language: str = "eng",
        timeout_seconds: int = 60,
        tesseract_cmd: str = "",
    ) -> None:
        self._language = language
        self._timeout_seconds = timeout_seconds
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def open(self) -> TesseractHandle:
        return TesseractHandle(
            language=self._language,
            timeout_seconds=self._timeout_seconds,
        )
