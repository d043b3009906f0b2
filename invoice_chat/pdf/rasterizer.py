"""PDF page rasterization for the OCR fallback path.

Two strategies are available and one is applied to every page of a document:

* ``render`` draws each full page to a PNG at a fixed DPI.
* ``embedded`` pulls the first raster image embedded on each page, which is
  what scanners typically produce. Pages without an image yield nothing.
"""

import pymupdf

from invoice_chat.logging.logger import Log
from invoice_chat.pdf.base import BaseRasterizer
from invoice_chat.pdf.exceptions import RasterizationError
from invoice_chat.pdf.models import PageImage, RasterizedDocument


class PageRenderRasterizer(BaseRasterizer):
    """Renders every page to a PNG at a fixed DPI."""

    def __init__(self, dpi: int = 300) -> None:
        if dpi <= 0:
            raise ValueError("dpi must be positive")
        self._dpi = dpi

    def rasterize(self, pdf_bytes: bytes) -> RasterizedDocument:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                images = [
                    PageImage(
                        page_number=index + 1,
                        data=page.get_pixmap(dpi=self._dpi).tobytes("png"),
                    )
                    for index, page in enumerate(doc)
                ]
                page_count = doc.page_count
        except Exception as exc:
            raise RasterizationError(f"Page rendering failed: {exc}") from exc
        Log.info(f"Rendered {len(images)} pages at {self._dpi} DPI")
        return RasterizedDocument(page_count=page_count, images=images)


class EmbeddedImageRasterizer(BaseRasterizer):
    """Extracts the first embedded raster image from each page."""

    def rasterize(self, pdf_bytes: bytes) -> RasterizedDocument:
        images: list[PageImage] = []
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                page_count = doc.page_count
                for index, page in enumerate(doc):
                    page_images = page.get_images(full=True)
                    if not page_images:
                        Log.debug(f"No image found on page {index + 1}")
                        continue
                    xref = page_images[0][0]
                    extracted = doc.extract_image(xref)
                    images.append(
                        PageImage(
                            page_number=index + 1,
                            data=extracted["image"],
                            extension=extracted.get("ext", "png"),
                        )
                    )
        except Exception as exc:
            raise RasterizationError(f"Embedded image extraction failed: {exc}") from exc
        Log.info(f"Extracted {len(images)} embedded images from {page_count} pages")
        return RasterizedDocument(page_count=page_count, images=images)
