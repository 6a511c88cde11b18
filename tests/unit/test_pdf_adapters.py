import pytest

from docmanager.extraction.base import BasePdfExtractor
from docmanager.extraction.exceptions import EncryptedPdfError, PdfExtractionError
from docmanager.extraction.pdfplumber_adapter import PdfPlumberAdapter
from docmanager.extraction.pymupdf_adapter import PyMuPdfAdapter


@pytest.fixture(params=[PdfPlumberAdapter, PyMuPdfAdapter], ids=["pdfplumber", "pymupdf"])
def adapter(request: pytest.FixtureRequest) -> BasePdfExtractor:
    return request.param()


class TestPdfAdapters:
    def test_extract_returns_text(self, adapter: BasePdfExtractor, sample_pdf_bytes: bytes) -> None:
        result = adapter.extract(sample_pdf_bytes)
        assert isinstance(result, str)
        assert "Hello PDF World" in result

    def test_extract_multi_page(
        self, adapter: BasePdfExtractor, multi_page_pdf_bytes: bytes
    ) -> None:
        result = adapter.extract(multi_page_pdf_bytes)
        assert "Page one content" in result
        assert "Page two content" in result

    def test_extract_empty_pdf_returns_empty_string(
        self, adapter: BasePdfExtractor, empty_pdf_bytes: bytes
    ) -> None:
        assert adapter.extract(empty_pdf_bytes) == ""

    def test_extract_raises_on_invalid_bytes(self, adapter: BasePdfExtractor) -> None:
        with pytest.raises(PdfExtractionError):
            adapter.extract(b"not a pdf")

    def test_extract_result_is_stripped(
        self, adapter: BasePdfExtractor, sample_pdf_bytes: bytes
    ) -> None:
        result = adapter.extract(sample_pdf_bytes)
        assert result == result.strip()

    def test_blank_pages_are_skipped(
        self, adapter: BasePdfExtractor, blank_middle_page_pdf_bytes: bytes
    ) -> None:
        assert adapter.extract(blank_middle_page_pdf_bytes) == "First page\nLast page"

    def test_password_protected_pdf_raises_encrypted_error(
        self, adapter: BasePdfExtractor, encrypted_pdf_bytes: bytes
    ) -> None:
        with pytest.raises(EncryptedPdfError):
            adapter.extract(encrypted_pdf_bytes)
