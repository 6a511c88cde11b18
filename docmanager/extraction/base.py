from abc import ABC, abstractmethod


class BasePdfExtractor(ABC):
    """Contract for PDF text extraction adapters."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> str:
        """Extract plain text from PDF bytes, pages joined by newlines.

        Raises:
            PdfExtractionError: if extraction fails for any reason.
        """


class BaseTextExtractor(ABC):
    """Contract for turning stored file bytes into classifiable text."""

    @abstractmethod
    def extract_text(self, content: bytes, file_extension: str) -> str:
        """Return the text of a file, or "" for unsupported or unreadable input.

        Never raises for unsupported formats.
        """
