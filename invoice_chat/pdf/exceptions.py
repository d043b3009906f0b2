class PdfError(Exception):
    """Base exception for PDF handling."""


class PdfExtractionError(PdfError):
    """Raised when native text extraction fails."""


class RasterizationError(PdfError):
    """Raised when PDF pages cannot be converted to raster images."""
