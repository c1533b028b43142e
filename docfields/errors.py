"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status it maps to, a user-facing message and an
optional internal detail string (only exposed in debug mode).
"""


class DocfieldsError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    default_message = "Failed to extract data from the document"

    def __init__(self, message: str | None = None, detail: str | None = None):
        self.user_message = message or self.default_message
        self.detail = detail
        super().__init__(self.user_message)


class InputError(DocfieldsError):
    """Malformed or missing request data."""

    status_code = 400
    default_message = "Invalid request"


class NotFoundError(DocfieldsError):
    """A requested resource does not exist."""

    status_code = 404
    default_message = "Not found"


class SchemaBuildError(DocfieldsError):
    """The field descriptor set cannot be turned into a schema."""

    status_code = 400
    default_message = "Invalid field definitions"

    def __init__(self, problems: list[str] | str, detail: str | None = None):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = problems
        super().__init__(
            f"{self.default_message}: {'; '.join(problems)}",
            detail=detail,
        )


# =============================================================================
# Document Errors
# =============================================================================


class DocumentError(DocfieldsError):
    """The uploaded document cannot be turned into text."""

    status_code = 400
    default_message = "Failed to read the uploaded document"


class InvalidFormatError(DocumentError):
    default_message = (
        "The uploaded file is not a valid PDF document. "
        "Please ensure you're uploading a proper PDF file."
    )


class CorruptedDocumentError(DocumentError):
    default_message = (
        "This PDF appears to contain corrupted, encrypted, or encoded text. "
        "Please try: 1) Re-saving the PDF from the original document, "
        "2) Converting it to a standard PDF format, or "
        "3) Using a different PDF file with readable text content."
    )


class ImageOnlyDocumentError(DocumentError):
    default_message = (
        "This PDF appears to be image-based (scanned document). "
        "To extract text from scanned documents, you'll need to use OCR "
        "(Optical Character Recognition) tools first."
    )


class EmptyDocumentError(DocumentError):
    default_message = "The uploaded file is empty. Please upload a document with text content."


# =============================================================================
# Model Call Errors
# =============================================================================


class ExtractionError(DocfieldsError):
    """The model call behind an extraction failed or returned unusable data."""

    status_code = 500
    default_message = "Failed to extract data from the document"

    def __init__(
        self,
        message: str | None = None,
        detail: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, detail=detail)
        if status_code is not None:
            self.status_code = status_code


class SuggestionError(DocfieldsError):
    """The model could not produce usable field suggestions."""

    status_code = 500
    default_message = "Failed to generate fields"
