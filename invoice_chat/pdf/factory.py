from invoice_chat.config.settings import Settings
from invoice_chat.pdf.base import BasePdfExtractor, BaseRasterizer
from invoice_chat.pdf.pdfplumber_adapter import PdfPlumberAdapter
from invoice_chat.pdf.pymupdf_adapter import PyMuPdfAdapter
from invoice_chat.pdf.rasterizer import EmbeddedImageRasterizer, PageRenderRasterizer


class PdfExtractorFactory:
    """Creates the correct PDF extractor based on settings."""

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()


class RasterizerFactory:
    """Creates the page rasterizer for the configured strategy."""

    STRATEGIES = ("render", "embedded")

    @classmethod
    def create(cls, settings: Settings) -> BaseRasterizer:
        strategy = settings.rasterize_strategy.lower()
        if strategy == "render":
            return PageRenderRasterizer(dpi=settings.rasterize_dpi)
        if strategy == "embedded":
            return EmbeddedImageRasterizer()
        raise ValueError(
            f"Unknown rasterize strategy '{strategy}'. Choose from: {list(cls.STRATEGIES)}"
        )
