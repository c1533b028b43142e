"""
Document text extraction using pypdf.

Turns uploaded PDF or plain-text documents into cleaned text for the model,
classifying unreadable documents into invalid, corrupted, image-only or empty.
"""

import logging
import os
import re
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..errors import (
    CorruptedDocumentError,
    EmptyDocumentError,
    ImageOnlyDocumentError,
    InvalidFormatError,
)

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF-"

# Text quality thresholds
MIN_READABLE_RATIO = 0.30
MIN_TEXT_LENGTH = 10
MIN_TOKEN_COUNT = 5

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_DECORATIVE_GLYPHS = re.compile(r"[☻♥♦♣☺♠►♪♫☼◄↕‼¶§▬↨↑↓→←∟↔▲▼]")
_ENCODING_SYMBOLS = re.compile(r"[¡¢£¤¥¦§¨©ª«¬]")
_HORIZONTAL_WHITESPACE = re.compile(r"[^\S\n]+")
_NEWLINE_RUNS = re.compile(r"\n+")
_UNREADABLE = re.compile(r"[^\w\s.,!?;:()\-]")
_REPEATED_CHAR = re.compile(r"(.)\1{10,}")


def is_pdf(content_type: str | None, filename: str | None = None) -> bool:
    """Whether an upload should go through the PDF path."""
    if content_type:
        media_type = content_type.split(";")[0].strip().lower()
        if media_type == PDF_MEDIA_TYPE:
            return True
        if media_type != "application/octet-stream":
            return False
    return bool(filename) and filename.lower().endswith(".pdf")


def clean_text(text: str) -> str:
    """
    Normalize extracted text.

    Removes control characters and known junk glyphs, collapses horizontal
    whitespace to single spaces and runs of newlines to one newline.
    """
    text = _CONTROL_CHARS.sub("", text)
    text = _DECORATIVE_GLYPHS.sub("", text)
    text = _ENCODING_SYMBOLS.sub("", text)
    text = _HORIZONTAL_WHITESPACE.sub(" ", text)
    text = _NEWLINE_RUNS.sub("\n", text)
    # Drop spaces left dangling around line breaks
    text = re.sub(r" ?\n ?", "\n", text)
    return text.strip()


def readable_ratio(text: str) -> float:
    """Share of word characters, whitespace and basic punctuation in ``text``."""
    if not text:
        return 0.0
    unreadable = len(_UNREADABLE.findall(text))
    return (len(text) - unreadable) / len(text)


def check_text_quality(text: str) -> str:
    """
    Reject text that is unusable for extraction.

    Args:
        text: Cleaned text extracted from a PDF.

    Returns:
        The same text if it passes every check.

    Raises:
        ImageOnlyDocumentError: If there is no or too little text.
        CorruptedDocumentError: If too few characters are readable.
    """
    if not text:
        raise ImageOnlyDocumentError(detail="No text layer found in PDF")

    ratio = readable_ratio(text)
    if ratio < MIN_READABLE_RATIO:
        raise CorruptedDocumentError(
            detail=f"Readable character ratio {ratio:.2f} below {MIN_READABLE_RATIO:.2f}"
        )

    if _REPEATED_CHAR.search(text):
        logger.warning("PDF contains excessive repeated characters, may have encoding issues")

    if len(text) < MIN_TEXT_LENGTH:
        raise ImageOnlyDocumentError(detail=f"Only {len(text)} characters of text found")

    token_count = len(text.split())
    if token_count < MIN_TOKEN_COUNT:
        raise ImageOnlyDocumentError(detail=f"Only {token_count} words of text found")

    return text


@contextmanager
def temporary_pdf(pdf_bytes: bytes) -> Iterator[str]:
    """
    Write PDF bytes to a temporary file and yield its path.

    The file is removed on exit, whether or not the body raised.
    """
    handle = tempfile.NamedTemporaryFile(prefix="docfields_", suffix=".pdf", delete=False)
    try:
        with handle:
            handle.write(pdf_bytes)
        yield handle.name
    finally:
        try:
            os.unlink(handle.name)
        except FileNotFoundError:
            pass


class DocumentService:
    """
    Service for turning uploaded documents into text.

    Uses pypdf to read the native text layer of PDFs (no OCR).
    """

    def __init__(self, max_pages: int = 200):
        """
        Initialize the document service.

        Args:
            max_pages: Maximum number of PDF pages to read.
        """
        self.max_pages = max_pages

    def extract_text(
        self,
        content: bytes,
        content_type: str | None = None,
        filename: str | None = None,
    ) -> str:
        """
        Extract text from an uploaded document.

        Args:
            content: Raw file bytes.
            content_type: Declared media type of the upload.
            filename: Original filename, used when no media type was declared.

        Returns:
            Text of the document.

        Raises:
            DocumentError: One of its subclasses when the document is unusable.
        """
        if is_pdf(content_type, filename):
            return self.extract_pdf_text(content)
        return self.decode_text(content)

    def decode_text(self, content: bytes) -> str:
        """Decode a text document, rejecting binary or blank content."""
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise InvalidFormatError(
                "The uploaded file could not be read as text. "
                "Please upload a PDF or a UTF-8 encoded text file.",
                detail=str(e),
            ) from e

        if not text.strip():
            raise EmptyDocumentError()
        return text

    def extract_pdf_text(self, pdf_bytes: bytes) -> str:
        """
        Extract and clean the text layer of a PDF.

        Args:
            pdf_bytes: PDF file as bytes.

        Returns:
            Cleaned text, pages separated by newlines.

        Raises:
            DocumentError: One of its subclasses when the PDF is unusable.
        """
        # Validate PDF magic bytes, an empty stream fails here too
        if pdf_bytes[: len(PDF_MAGIC)] != PDF_MAGIC:
            raise InvalidFormatError(detail="File does not start with the %PDF- header")

        with temporary_pdf(pdf_bytes) as path:
            pages = self._read_pages(path)

        logger.info("Extracted text from %d PDF page(s)", len(pages))

        raw_text = "\n".join(" ".join(page.split()) for page in pages)
        return check_text_quality(clean_text(raw_text))

    def _read_pages(self, path: str) -> list[str]:
        try:
            reader = PdfReader(path)
            if reader.is_encrypted and not reader.decrypt(""):
                raise CorruptedDocumentError(detail="PDF is password-protected")

            total_pages = len(reader.pages)
            if total_pages > self.max_pages:
                logger.warning(
                    "PDF has %d pages, reading only the first %d",
                    total_pages,
                    self.max_pages,
                )

            return [
                reader.pages[i].extract_text() or ""
                for i in range(min(total_pages, self.max_pages))
            ]

        except CorruptedDocumentError:
            raise
        except PdfReadError as e:
            logger.error("PDF read error: %s", e)
            raise CorruptedDocumentError(detail=f"Invalid or corrupted PDF file: {e}") from e
        except Exception as e:
            logger.exception("Unexpected error during PDF text extraction")
            raise CorruptedDocumentError(detail=f"PDF parsing failed: {e}") from e


# Singleton instance for convenience
_document_service: DocumentService | None = None


def get_document_service() -> DocumentService:
    """Get or create the document service singleton."""
    global _document_service
    if _document_service is None:
        from ..config import get_settings

        _document_service = DocumentService(max_pages=get_settings().max_pdf_pages)
    return _document_service
