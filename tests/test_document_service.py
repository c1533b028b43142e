"""Tests for document text extraction."""

import os
import tempfile

import pytest
from pypdf.errors import PdfReadError

from docfields.errors import (
    CorruptedDocumentError,
    DocumentError,
    EmptyDocumentError,
    ImageOnlyDocumentError,
    InvalidFormatError,
)
from docfields.services import document_service as document_module
from docfields.services.document_service import (
    DocumentService,
    check_text_quality,
    clean_text,
    is_pdf,
    readable_ratio,
    temporary_pdf,
)


@pytest.fixture
def service() -> DocumentService:
    return DocumentService()


def _temp_pdf_files() -> set[str]:
    tmp = tempfile.gettempdir()
    return {
        name
        for name in os.listdir(tmp)
        if name.startswith("docfields_") and name.endswith(".pdf")
    }


class TestCleanText:
    """Tests for text normalization."""

    def test_collapses_whitespace(self):
        assert clean_text("Invoice   #A123\t\tTotal") == "Invoice #A123 Total"

    def test_collapses_newline_runs(self):
        assert clean_text("first\n\n\n  second") == "first\nsecond"

    def test_strips_control_characters(self):
        assert clean_text("Total\x00\x07: 450") == "Total: 450"

    def test_strips_junk_glyphs(self):
        assert clean_text("►Total◄ §450") == "Total 450"

    def test_empty_input(self):
        assert clean_text("   \n\n ") == ""


class TestReadableRatio:
    """Tests for the readable character ratio."""

    def test_plain_text_is_fully_readable(self):
        assert readable_ratio("Invoice A123, total 450.") == 1.0

    def test_symbols_lower_the_ratio(self):
        assert readable_ratio("ab@@") == 0.5

    def test_empty_text(self):
        assert readable_ratio("") == 0.0

    def test_non_latin_letters_are_readable(self):
        assert readable_ratio("Rechnung Größe Ωmega") == 1.0


class TestCheckTextQuality:
    """Tests for the thresholds that reject unusable text."""

    def test_accepts_normal_text(self):
        text = "Invoice A123 issued on 2024-03-01 total 450"
        assert check_text_quality(text) == text

    def test_empty_text_is_image_only(self):
        with pytest.raises(ImageOnlyDocumentError):
            check_text_quality("")

    def test_ratio_at_threshold_passes(self):
        # 10 readable out of 30 characters
        text = "a b c d e " + "@" * 20
        assert check_text_quality(text) == text

    def test_ratio_below_threshold_is_corrupted(self):
        with pytest.raises(CorruptedDocumentError):
            check_text_quality("a b c d e " + "@" * 30)

    def test_short_text_is_image_only(self):
        with pytest.raises(ImageOnlyDocumentError):
            check_text_quality("Page 1")

    def test_few_tokens_is_image_only(self):
        with pytest.raises(ImageOnlyDocumentError):
            check_text_quality("Confidential document draft")

    def test_repeated_characters_only_warn(self, caplog):
        text = "Invoice A123 total 450 " + "=" * 12 + " thanks"
        assert check_text_quality(text) == text
        assert "repeated characters" in caplog.text

    def test_errors_carry_user_messages(self):
        with pytest.raises(ImageOnlyDocumentError) as exc_info:
            check_text_quality("")
        assert "OCR" in exc_info.value.user_message
        assert exc_info.value.status_code == 400


class TestIsPdf:
    """Tests for routing uploads to the PDF path."""

    def test_pdf_media_type(self):
        assert is_pdf("application/pdf", "scan.bin")
        assert is_pdf("application/pdf; charset=binary", None)

    def test_octet_stream_with_pdf_extension(self):
        assert is_pdf("application/octet-stream", "invoice.PDF")
        assert not is_pdf("application/octet-stream", "invoice.txt")

    def test_missing_media_type_uses_extension(self):
        assert is_pdf(None, "invoice.pdf")
        assert not is_pdf(None, "notes.txt")
        assert not is_pdf(None, None)

    def test_text_media_type(self):
        assert not is_pdf("text/plain", "invoice.pdf")


class TestExtractPdfText:
    """Tests for reading the text layer of PDFs."""

    def test_extracts_text(self, service, invoice_pdf_bytes):
        text = service.extract_pdf_text(invoice_pdf_bytes)
        assert "ACME Corporation" in text
        assert "A123" in text
        assert "450.00" in text

    def test_pages_are_joined_by_newlines(self, service, make_pdf):
        pdf = make_pdf(
            ["Invoice A123 for consulting work"],
            ["Total amount due is 450 dollars"],
        )
        text = service.extract_pdf_text(pdf)
        first, second = text.split("\n")
        assert "A123" in first
        assert "450" in second

    def test_page_whitespace_is_collapsed(self, service, invoice_pdf_bytes):
        text = service.extract_pdf_text(invoice_pdf_bytes)
        assert "\n" not in text
        assert "  " not in text

    def test_page_limit(self, make_pdf):
        pdf = make_pdf(
            ["Invoice A123 for consulting work"],
            ["Total amount due is 450 dollars"],
        )
        text = DocumentService(max_pages=1).extract_pdf_text(pdf)
        assert "A123" in text
        assert "450" not in text

    def test_invalid_header(self, service, invalid_file_bytes):
        with pytest.raises(InvalidFormatError):
            service.extract_pdf_text(invalid_file_bytes)

    @pytest.mark.parametrize("content", [b"", b"%PD", b"\n%PDF-1.4"])
    def test_missing_header_is_invalid_format(self, service, content):
        """Test that any stream not starting with %PDF- is rejected as invalid."""
        with pytest.raises(InvalidFormatError):
            service.extract_pdf_text(content)

    def test_page_without_text_is_image_only(self, service, make_pdf):
        with pytest.raises(ImageOnlyDocumentError):
            service.extract_pdf_text(make_pdf([]))

    def test_truncated_pdf_is_a_document_error(self, service):
        with pytest.raises(DocumentError):
            service.extract_pdf_text(b"%PDF-1.4\n%garbage with no objects")

    def test_reader_failure_is_corrupted(self, service, invoice_pdf_bytes, monkeypatch):
        def broken_reader(path):
            raise PdfReadError("EOF marker not found")

        monkeypatch.setattr(document_module, "PdfReader", broken_reader)
        with pytest.raises(CorruptedDocumentError) as exc_info:
            service.extract_pdf_text(invoice_pdf_bytes)
        assert "EOF marker not found" in exc_info.value.detail

    def test_unexpected_reader_failure_is_corrupted(self, service, invoice_pdf_bytes, monkeypatch):
        def broken_reader(path):
            raise ValueError("unexpected structure")

        monkeypatch.setattr(document_module, "PdfReader", broken_reader)
        with pytest.raises(CorruptedDocumentError):
            service.extract_pdf_text(invoice_pdf_bytes)

    def test_temp_file_removed_on_success(self, service, invoice_pdf_bytes):
        before = _temp_pdf_files()
        service.extract_pdf_text(invoice_pdf_bytes)
        assert _temp_pdf_files() == before

    def test_temp_file_removed_on_failure(self, service, invoice_pdf_bytes, monkeypatch):
        def broken_reader(path):
            raise PdfReadError("broken")

        monkeypatch.setattr(document_module, "PdfReader", broken_reader)
        before = _temp_pdf_files()
        with pytest.raises(CorruptedDocumentError):
            service.extract_pdf_text(invoice_pdf_bytes)
        assert _temp_pdf_files() == before


class TestTemporaryPdf:
    """Tests for the temporary file context manager."""

    def test_file_exists_inside_and_is_removed_after(self):
        with temporary_pdf(b"%PDF-1.4 test") as path:
            assert os.path.exists(path)
            with open(path, "rb") as f:
                assert f.read() == b"%PDF-1.4 test"
        assert not os.path.exists(path)

    def test_file_removed_when_body_raises(self):
        with pytest.raises(RuntimeError):
            with temporary_pdf(b"%PDF-1.4 test") as path:
                raise RuntimeError("boom")
        assert not os.path.exists(path)

    def test_file_already_removed_is_tolerated(self):
        with temporary_pdf(b"%PDF-1.4 test") as path:
            os.unlink(path)
        assert not os.path.exists(path)


class TestDecodeText:
    """Tests for plain-text documents."""

    def test_decodes_utf8(self, service):
        assert service.decode_text("Größe: 42".encode()) == "Größe: 42"

    def test_strips_byte_order_mark(self, service):
        assert service.decode_text(b"\xef\xbb\xbfInvoice A123") == "Invoice A123"

    def test_undecodable_is_invalid_format(self, service):
        with pytest.raises(InvalidFormatError):
            service.decode_text(b"\xff\xfe\x00\x81binary")

    def test_blank_is_empty(self, service):
        with pytest.raises(EmptyDocumentError):
            service.decode_text(b"  \n ")

    def test_extract_text_routes_by_type(self, service, invoice_pdf_bytes):
        assert "A123" in service.extract_text(invoice_pdf_bytes, "application/pdf", "a.pdf")
        assert service.extract_text(b"Invoice A123", "text/plain", "a.txt") == "Invoice A123"
