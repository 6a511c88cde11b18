from docmanager.extraction.base import BasePdfExtractor, BaseTextExtractor
from docmanager.extraction.exceptions import EncryptedPdfError, PdfExtractionError
from docmanager.logging.logger import Log

PLAIN_TEXT_EXTENSIONS = frozenset(
    {".txt", ".text", ".md", ".csv", ".tsv", ".json", ".xml", ".html", ".htm", ".log"}
)


def normalize_extension(file_extension: str) -> str:
    """``"PDF"``, ``".pdf"`` and ``"report.pdf"`` all become ``".pdf"``."""
    extension = file_extension.strip().lower()
    if "." in extension:
        extension = extension[extension.rfind(".") :]
    elif extension:
        extension = f".{extension}"
    return extension


class TextExtractor(BaseTextExtractor):
    """Decodes plain-text files as UTF-8 and hands PDFs to a PDF adapter."""

    def __init__(self, pdf_extractor: BasePdfExtractor) -> None:
        self._pdf_extractor = pdf_extractor

    def extract_text(self, content: bytes, file_extension: str) -> str:
        extension = normalize_extension(file_extension)
        Log.debug(f"Extracting text from {len(content)} bytes ({extension or 'no extension'})")

        if not content:
            return ""
        if extension == ".pdf":
            return self._extract_pdf(content)
        if extension in PLAIN_TEXT_EXTENSIONS:
            return self._decode(content, extension)

        Log.debug(f"No text extraction for '{extension}' files")
        return ""

    def _extract_pdf(self, content: bytes) -> str:
        try:
            return self._pdf_extractor.extract(content)
        except EncryptedPdfError:
            Log.info("Skipping text extraction of a password protected PDF")
            return ""
        except PdfExtractionError as exc:
            Log.warning("PDF text extraction failed", exc)
            return ""

    @staticmethod
    def _decode(content: bytes, extension: str) -> str:
        try:
            return content.decode("utf-8-sig").strip()
        except UnicodeDecodeError as exc:
            Log.warning(f"Could not decode '{extension}' file as UTF-8", exc)
            return ""
