from unittest.mock import patch

import pytest

from invoice_chat.pdf.factory import PdfExtractorFactory, RasterizerFactory
from invoice_chat.pdf.pdfplumber_adapter import PdfPlumberAdapter
from invoice_chat.pdf.pymupdf_adapter import PyMuPdfAdapter
from invoice_chat.pdf.rasterizer import EmbeddedImageRasterizer, PageRenderRasterizer


def _make_settings(pdf_engine: str = "pdfplumber", rasterize_strategy: str = "render"):  # type: ignore[no-untyped-def]
    """Create a minimal Settings-like object with only the PDF fields."""
    with patch("invoice_chat.config.settings.Settings") as mock_cls:
        settings = mock_cls.return_value
        settings.pdf_engine = pdf_engine
        settings.rasterize_strategy = rasterize_strategy
        settings.rasterize_dpi = 150
        return settings


class TestPdfExtractorFactory:
    def test_creates_pdfplumber_adapter(self) -> None:
        adapter = PdfExtractorFactory.create(_make_settings("pdfplumber"))
        assert isinstance(adapter, PdfPlumberAdapter)

    def test_creates_pymupdf_adapter(self) -> None:
        adapter = PdfExtractorFactory.create(_make_settings("pymupdf"))
        assert isinstance(adapter, PyMuPdfAdapter)

    def test_is_case_insensitive(self) -> None:
        adapter = PdfExtractorFactory.create(_make_settings("PdfPlumber"))
        assert isinstance(adapter, PdfPlumberAdapter)

    def test_raises_for_unknown_engine(self) -> None:
        with pytest.raises(ValueError, match="Unknown PDF engine"):
            PdfExtractorFactory.create(_make_settings("unknown"))


class TestRasterizerFactory:
    def test_creates_render_rasterizer(self) -> None:
        rasterizer = RasterizerFactory.create(_make_settings(rasterize_strategy="render"))
        assert isinstance(rasterizer, PageRenderRasterizer)

    def test_creates_embedded_rasterizer(self) -> None:
        rasterizer = RasterizerFactory.create(_make_settings(rasterize_strategy="embedded"))
        assert isinstance(rasterizer, EmbeddedImageRasterizer)

    def test_raises_for_unknown_strategy(self) -> None:
        with pytest.raises(ValueError, match="Unknown rasterize strategy"):
            RasterizerFactory.create(_make_settings(rasterize_strategy="vector"))
