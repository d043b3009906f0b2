import base64
import time

from invoice_chat.chat.sanitizer import ContentSanitizer
from invoice_chat.config.settings import Settings
from invoice_chat.logging.logger import Log
from invoice_chat.ocr.factory import OcrEngineFactory
from invoice_chat.pdf.factory import PdfExtractorFactory, RasterizerFactory
from invoice_chat.upload.classifier import FormatClassifier
from invoice_chat.upload.extraction import ExtractionPipeline
from invoice_chat.upload.models import UploadedDocument, UploadResult

PDF_THUMBNAIL_PATH = "/static/pdf-thumbnail.png"


class UploadService:
    """Validate -> extract -> reject disallowed categories -> describe the upload."""

    def __init__(
        self,
        classifier: FormatClassifier,
        pipeline: ExtractionPipeline,
        sanitizer: ContentSanitizer,
    ) -> None:
        self._classifier = classifier
        self._pipeline = pipeline
        self._sanitizer = sanitizer

    def handle(
        self,
        content: bytes,
        media_type: str | None,
        filename: str | None,
        base_url: str,
    ) -> UploadResult:
        """Process one uploaded file.

        Raises:
            UploadValidationError: on size or media type rejection.
            ExtractionError: if extraction fails.
            DisallowedDocumentError: if the text matches a disallowed category.
        """
        document = self._classifier.classify(content, media_type, filename)
        Log.info(
            f"Accepted upload {document.original_name} "
            f"({document.media_type}, {document.size_bytes} bytes)"
        )

        result = self._pipeline.extract(document)
        Log.info(
            f"Extracted {len(result.text)} chars via {result.source_stage} "
            f"from {result.page_count} page(s)"
        )
        self._sanitizer.ensure_allowed(result.text)

        return UploadResult(
            url=self._display_url(document, base_url),
            pathname=f"/uploads/{int(time.time() * 1000)}-{document.original_name}",
            content_type=document.media_type,
            extracted_text=result.text,
        )

    @staticmethod
    def _display_url(document: UploadedDocument, base_url: str) -> str:
        if document.is_pdf:
            return base_url.rstrip("/") + PDF_THUMBNAIL_PATH
        encoded = base64.b64encode(document.content).decode("ascii")
        return f"data:{document.media_type};base64,{encoded}"


def build_upload_service(settings: Settings) -> UploadService:
    """Build an UploadService with the configured PDF, rasterization and OCR engines."""
    pipeline = ExtractionPipeline(
        pdf_extractor=PdfExtractorFactory.create(settings),
        rasterizer=RasterizerFactory.create(settings),
        ocr_engine=OcrEngineFactory.create(settings),
    )
    return UploadService(
        classifier=FormatClassifier(
            max_size_bytes=settings.max_upload_size_bytes,
            allowed_media_types=settings.allowed_media_types,
        ),
        pipeline=pipeline,
        sanitizer=ContentSanitizer(settings.disallowed_keywords),
    )
