from docmanager.config.settings import Settings
from docmanager.extraction.base import BasePdfExtractor, BaseTextExtractor
from docmanager.extraction.pdfplumber_adapter import PdfPlumberAdapter
from docmanager.extraction.pymupdf_adapter import PyMuPdfAdapter
from docmanager.extraction.text_extractor import TextExtractor


class TextExtractorFactory:
    """Creates a text extractor around the configured PDF engine."""

    PDF_ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseTextExtractor:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.PDF_ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.PDF_ADAPTERS)}"
            )
        return TextExtractor(adapter_cls())
