from abc import ABC, abstractmethod

from invoice_chat.pdf.models import PdfText, RasterizedDocument


class BasePdfExtractor(ABC):
    """Contract for all native PDF text extraction adapters."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> PdfText:
        """Extract embedded text from PDF bytes without rendering.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            PdfText with page texts joined by newlines and stripped.

        Raises:
            PdfExtractionError: if the PDF cannot be opened or read.
        """


class BaseRasterizer(ABC):
    """Contract for converting PDF pages into raster images for OCR."""

    @abstractmethod
    def rasterize(self, pdf_bytes: bytes) -> RasterizedDocument:
        """Produce one image per page (or per page that carries an image).

        Raises:
            RasterizationError: if the PDF cannot be rendered.
        """
