from dataclasses import dataclass

PDF_MEDIA_TYPE = "application/pdf"

SOURCE_NATIVE = "native"
SOURCE_OCR = "ocr"


@dataclass(frozen=True)
class UploadedDocument:
    """A validated upload. Lives only for the duration of extraction."""

    content: bytes
    media_type: str
    size_bytes: int
    original_name: str

    @property
    def is_pdf(self) -> bool:
        return self.media_type == PDF_MEDIA_TYPE


@dataclass(frozen=True)
class ExtractionResult:
    """Text derived from an uploaded document and the stage that produced it."""

    text: str
    source_stage: str
    page_count: int = 1


@dataclass(frozen=True)
class UploadResult:
    """Payload returned to the client after a successful upload."""

    url: str
    pathname: str
    content_type: str
    extracted_text: str
