from invoice_chat.config.settings import Settings
from invoice_chat.ocr.base import BaseOcrEngine
from invoice_chat.ocr.tesseract_adapter import TesseractEngine


class OcrEngineFactory:
    """Creates the configured OCR engine."""

    ENGINES = ("tesseract",)

    @classmethod
    def create(cls, settings: Settings) -> BaseOcrEngine:
        engine = settings.ocr_engine.lower()
        if engine == "tesseract":
            return TesseractEngine(
                language=settings.ocr_language,
                timeout_seconds=settings.ocr_timeout_seconds,
                tesseract_cmd=settings.tesseract_cmd,
            )
        raise ValueError(f"Unknown OCR engine '{engine}'. Choose from: {list(cls.ENGINES)}")
