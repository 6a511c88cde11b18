class TextExtractionError(Exception):
    """Base exception for all text extraction errors."""


class PdfExtractionError(TextExtractionError):
    """Raised when a PDF adapter cannot extract text."""


class EncryptedPdfError(PdfExtractionError):
    """Raised when a PDF cannot be opened without a password."""
