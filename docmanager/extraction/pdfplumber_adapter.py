import io

import pdfplumber
from pdfminer.pdfdocument import PDFPasswordIncorrect

from docmanager.extraction.base import BasePdfExtractor
from docmanager.extraction.exceptions import EncryptedPdfError, PdfExtractionError


def _is_password_error(exc: BaseException | None) -> bool:
    # pdfplumber may wrap pdfminer's error, so look along the chain
    while exc is not None:
        if isinstance(exc, PDFPasswordIncorrect):
            return True
        exc = exc.__cause__ or exc.__context__
    return False


class PdfPlumberAdapter(BasePdfExtractor):
    """Reads the text layer of each page with pdfplumber.

    Pages without a text layer (scans) are skipped rather than leaving blank
    lines between the pages that do have text.
    """

    def extract(self, pdf_bytes: bytes) -> str:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                texts = [(page.extract_text() or "").strip() for page in pdf.pages]
        except Exception as exc:
            if _is_password_error(exc):
                raise EncryptedPdfError("The PDF is password protected") from exc
            raise PdfExtractionError(f"pdfplumber could not read the document: {exc}") from exc
        return "\n".join(text for text in texts if text)
