"""Pytest configuration and fixtures."""

from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from docfields.main import app
from docfields.services.ai import get_ai_service


def build_pdf(*pages: list[str]) -> bytes:
    """
    Build a small but valid PDF with one text line per list entry.

    Each positional argument is one page. Offsets in the xref table are
    computed, so pypdf reads the result without recovery.
    """

    def escape(line: str) -> str:
        return line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")

    objects: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"",  # Pages, filled in once the page object numbers are known
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    page_refs = []
    for lines in pages:
        content = ["BT", "/F1 12 Tf", "14 TL", "72 720 Td"]
        for i, line in enumerate(lines):
            if i:
                content.append("T*")
            content.append(f"({escape(line)}) Tj")
        content.append("ET")
        stream = "\n".join(content).encode("latin-1")

        page_number = len(objects) + 1
        content_number = page_number + 1
        page_refs.append(f"{page_number} 0 R")
        objects.append(
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Resources << /Font << /F1 3 0 R >> >> "
            b"/Contents %d 0 R >>" % content_number
        )
        objects.append(
            b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream"
        )

    objects[1] = (
        f"<< /Type /Pages /Kids [{' '.join(page_refs)}] /Count {len(page_refs)} >>"
    ).encode("latin-1")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


class FakeAIService:
    """
    Stand-in for AIService.

    ``responses`` maps a schema name to the object returned for it (or to an
    exception to raise). Every call is recorded in ``calls``.
    """

    def __init__(self, responses: dict[str, Any] | None = None):
        self.responses = responses or {}
        self.calls: list[dict[str, Any]] = []

    async def generate_object(
        self,
        prompt: str,
        *,
        schema_name: str,
        json_schema: dict[str, Any],
        system_prompt: str | None = None,
        mock=None,
    ) -> dict[str, Any]:
        self.calls.append(
            {
                "prompt": prompt,
                "schema_name": schema_name,
                "json_schema": json_schema,
                "system_prompt": system_prompt,
            }
        )
        response = self.responses[schema_name]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_ai() -> Generator[FakeAIService, None, None]:
    """Fake model collaborator injected into the app's dependencies."""
    fake = FakeAIService()
    app.dependency_overrides[get_ai_service] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_ai_service, None)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_pdf():
    """Factory for text PDFs, one list of lines per page."""
    return build_pdf


@pytest.fixture
def invoice_pdf_bytes() -> bytes:
    """A text PDF containing a short invoice."""
    return build_pdf(
        [
            "ACME Corporation",
            "Invoice #A123",
            "Date: 2024-03-01",
            "Consulting services for March",
            "Total: $450.00",
        ]
    )


@pytest.fixture
def invalid_file_bytes() -> bytes:
    """Create invalid (non-PDF) file bytes for testing."""
    return b"This is not a PDF file"


@pytest.fixture
def invoice_fields() -> list[dict[str, Any]]:
    """Field descriptors in the wire format sent by the frontend."""
    return [
        {"name": "invoiceNumber", "type": "text", "required": True},
        {"name": "total", "type": "number", "required": True},
    ]
