"""Text extraction with format-dependent fallback.

PDF:   native text -> (empty) -> rasterize pages -> OCR each page
Image: OCR the raw bytes

Native text is final only when its trimmed form is non-empty. An empty OCR
result is a valid outcome; a failure in any stage aborts extraction.
"""

from invoice_chat.logging.logger import Log
from invoice_chat.ocr.base import BaseOcrEngine
from invoice_chat.ocr.exceptions import OcrError
from invoice_chat.pdf.base import BasePdfExtractor, BaseRasterizer
from invoice_chat.pdf.exceptions import PdfExtractionError, RasterizationError
from invoice_chat.upload.exceptions import ExtractionError
from invoice_chat.upload.models import (
    SOURCE_NATIVE,
    SOURCE_OCR,
    ExtractionResult,
    UploadedDocument,
)


class ExtractionPipeline:
    def __init__(
        self,
        pdf_extractor: BasePdfExtractor,
        rasterizer: BaseRasterizer,
        ocr_engine: BaseOcrEngine,
    ) -> None:
        self._pdf_extractor = pdf_extractor
        self._rasterizer = rasterizer
        self._ocr_engine = ocr_engine

    def extract(self, document: UploadedDocument) -> ExtractionResult:
        """Extract text from a validated document.

        Raises:
            ExtractionError: if native extraction, rasterization or OCR fails.
        """
        if document.is_pdf:
            return self._extract_pdf(document)
        return self._extract_image(document)

    def _extract_pdf(self, document: UploadedDocument) -> ExtractionResult:
        try:
            native = self._pdf_extractor.extract(document.content)
        except PdfExtractionError as exc:
            raise ExtractionError(f"Failed to parse PDF content: {exc}") from exc

        if native.text.strip():
            Log.info(
                f"Native extraction produced {len(native.text)} chars "
                f"from {document.original_name}"
            )
            return ExtractionResult(
                text=native.text,
                source_stage=SOURCE_NATIVE,
                page_count=native.page_count,
            )

        Log.info(f"No text layer in {document.original_name}, falling back to OCR")
        try:
            rasterized = self._rasterizer.rasterize(document.content)
        except RasterizationError as exc:
            raise ExtractionError(f"Failed to parse PDF content: {exc}") from exc

        texts = self._recognize_all([image.data for image in rasterized.images])
        return ExtractionResult(
            text="\n".join(texts),
            source_stage=SOURCE_OCR,
            page_count=rasterized.page_count,
        )

    def _extract_image(self, document: UploadedDocument) -> ExtractionResult:
        texts = self._recognize_all([document.content])
        return ExtractionResult(text=texts[0], source_stage=SOURCE_OCR, page_count=1)

    def _recognize_all(self, images: list[bytes]) -> list[str]:
        texts: list[str] = []
        try:
            with self._ocr_engine.acquire() as handle:
                for number, image in enumerate(images, start=1):
                    Log.info(f"Performing OCR on image {number}/{len(images)}")
                    texts.append(handle.recognize(image))
        except OcrError as exc:
            raise ExtractionError(str(exc)) from exc
        return texts
