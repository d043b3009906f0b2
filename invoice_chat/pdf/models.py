from dataclasses import dataclass, field


@dataclass(frozen=True)
class PdfText:
    """Text read directly from a PDF's content streams."""

    text: str
    page_count: int


@dataclass(frozen=True)
class PageImage:
    """One raster image derived from a PDF page."""

    page_number: int
    data: bytes
    extension: str = "png"


@dataclass
class RasterizedDocument:
    """Raster images of a PDF in page order."""

    page_count: int
    images: list[PageImage] = field(default_factory=list)
