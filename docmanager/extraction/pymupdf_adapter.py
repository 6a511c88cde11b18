import pymupdf

from docmanager.extraction.base import BasePdfExtractor
from docmanager.extraction.exceptions import EncryptedPdfError, PdfExtractionError


class PyMuPdfAdapter(BasePdfExtractor):
    """Reads the text layer of each page with PyMuPDF; blank pages are skipped."""

    def extract(self, pdf_bytes: bytes) -> str:
        try:
            doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")  # type: ignore[no-untyped-call]
        except Exception as exc:
            raise PdfExtractionError(f"PyMuPDF could not open the document: {exc}") from exc

        with doc:
            if doc.needs_pass:
                raise EncryptedPdfError("The PDF is password protected")
            try:
                texts = [page.get_text().strip() for page in doc]
            except Exception as exc:
                raise PdfExtractionError(f"PyMuPDF could not read the document: {exc}") from exc
        return "\n".join(text for text in texts if text)
