"""
Structured extraction: document + field descriptors -> validated JSON object.

Orchestrates upload validation, text extraction, schema construction, the
model call and the final validation of the model's output.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from ..errors import ExtractionError, InputError
from ..models import (
    ExtractionResult,
    FieldDescriptor,
    FieldKind,
    ItemKind,
    UploadedDocument,
)
from .ai import AIService, AIServiceError, ModelFailure
from .ai.prompts import EXTRACTION_SYSTEM_PROMPT, build_extraction_prompt
from .document_service import DocumentService, is_pdf
from .schema_builder import EXTRACTION_SCHEMA_NAME, ExtractionSchema, build_extraction_schema
from .suggestion_service import SuggestionService

logger = logging.getLogger(__name__)

# Media types that are never text-decodable
BINARY_MEDIA_PREFIXES = ("image/", "audio/", "video/", "font/")
BINARY_MEDIA_TYPES = {
    "application/zip",
    "application/gzip",
    "application/x-tar",
    "application/msword",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}


def validate_upload(document: UploadedDocument | None, max_bytes: int) -> None:
    """
    Check that an upload is present, within limits and of a supported type.

    Supported: application/pdf, or anything text-decodable. Declared binary
    types are rejected here; undecodable content is caught during extraction.

    Raises:
        InputError: If the upload is missing, too large or of a binary type.
    """
    if document is None or not document.filename:
        raise InputError("No file uploaded")

    if document.size > max_bytes:
        raise InputError(
            f"File is too large ({document.size} bytes). "
            f"Maximum size is {max_bytes // (1024 * 1024)} MB."
        )

    if is_pdf(document.content_type, document.filename):
        return

    media_type = (document.content_type or "").split(";")[0].strip().lower()
    if media_type.startswith(BINARY_MEDIA_PREFIXES) or media_type in BINARY_MEDIA_TYPES:
        raise InputError(
            f"Unsupported file type '{media_type}'. Please upload a PDF or a text file."
        )


class ExtractionService:
    """
    Service for schema-constrained extraction from a single document.

    Stateless: every call builds its own schema and holds nothing afterwards.
    """

    def __init__(
        self,
        ai_service: AIService,
        document_service: DocumentService,
        suggestion_service: SuggestionService | None = None,
        max_upload_bytes: int = 20 * 1024 * 1024,
    ):
        """
        Initialize the extraction service.

        Args:
            ai_service: Model collaborator.
            document_service: Text extraction collaborator.
            suggestion_service: Used to derive fields from a description.
            max_upload_bytes: Largest accepted upload.
        """
        self.ai_service = ai_service
        self.document_service = document_service
        self.suggestion_service = suggestion_service or SuggestionService(ai_service)
        self.max_upload_bytes = max_upload_bytes

    async def extract(
        self,
        document: UploadedDocument | None,
        fields: Sequence[FieldDescriptor | Mapping[str, Any]],
        context: str | None = None,
    ) -> ExtractionResult:
        """
        Extract the requested fields from a document.

        Args:
            document: The uploaded file.
            fields: Field descriptors, in the order the result should use.
            context: Optional free-text instruction appended to the prompt.

        Returns:
            ExtractionResult whose data has exactly one key per field.

        Raises:
            InputError: Missing/unsupported file or no fields.
            DocumentError: The document has no usable text.
            SchemaBuildError: The field descriptors are malformed.
            ExtractionError: The model call failed or returned invalid data.
        """
        validate_upload(document, self.max_upload_bytes)

        logger.info(
            "Processing document: %s (%d bytes, %s)",
            document.filename,
            document.size,
            document.content_type or "unknown type",
        )

        text = self.document_service.extract_text(
            document.content,
            content_type=document.content_type,
            filename=document.filename,
        )

        if not fields:
            raise InputError("Please add at least one field for extraction")

        schema = build_extraction_schema(fields)
        data = await self._run_model(schema, text, context)

        logger.info(
            "Extracted %d field(s) from '%s'",
            len(data),
            document.filename,
        )

        return ExtractionResult(
            data=data,
            source_file_name=document.filename,
            source_file_size=document.size,
            source_file_type=document.content_type or "",
        )

    async def extract_with_description(
        self,
        document: UploadedDocument | None,
        description: str,
        context: str | None = None,
    ) -> ExtractionResult:
        """
        Extract using fields suggested for a free-text description.

        The upload is checked before the suggestion call so a bad file never
        costs a model call.
        """
        validate_upload(document, self.max_upload_bytes)
        suggestion = await self.suggestion_service.suggest(description)
        logger.info(
            "Using %d suggested field(s): %s",
            len(suggestion.fields),
            [f.name for f in suggestion.fields],
        )
        return await self.extract(document, suggestion.fields, context)

    async def _run_model(
        self,
        schema: ExtractionSchema,
        text: str,
        context: str | None,
    ) -> dict[str, Any]:
        prompt = build_extraction_prompt(schema.fields, text, context)

        try:
            raw = await self.ai_service.generate_object(
                prompt,
                schema_name=EXTRACTION_SCHEMA_NAME,
                json_schema=schema.json_schema,
                system_prompt=EXTRACTION_SYSTEM_PROMPT,
                mock=lambda: _mock_extraction(schema.fields),
            )
        except AIServiceError as e:
            logger.error("Extraction model call failed (%s): %s", e.failure.value, e)
            status_code = 400 if e.failure == ModelFailure.INVALID_REQUEST else None
            message = (
                "The document could not be processed by the model. "
                "It may be too long; try a shorter document."
                if status_code == 400
                else None
            )
            raise ExtractionError(message, detail=str(e), status_code=status_code) from e

        # The model is constrained to the schema, but that is best-effort
        try:
            return schema.validate(raw)
        except ValidationError as e:
            logger.error("Model output failed schema validation: %s", e)
            raise ExtractionError(
                "The model returned data that does not match the requested fields. "
                "Please try again.",
                detail=str(e),
            ) from e


def _mock_extraction(fields: list[FieldDescriptor]) -> dict[str, Any]:
    """Return mock extraction data for development."""
    mock_data: dict[str, Any] = {}
    for field in fields:
        if field.kind == FieldKind.TEXT:
            mock_data[field.name] = f"MOCK-{field.name.upper()}-001"
        elif field.kind == FieldKind.NUMBER:
            mock_data[field.name] = 42
        elif field.kind == FieldKind.BOOLEAN:
            mock_data[field.name] = True
        elif field.kind == FieldKind.DATE:
            mock_data[field.name] = "2024-01-15"
        elif field.kind == FieldKind.ARRAY:
            if field.effective_item_kind == ItemKind.NUMBER:
                mock_data[field.name] = [1, 2, 3]
            else:
                mock_data[field.name] = [f"MOCK-{field.name.upper()}-{i}" for i in range(1, 3)]
    return mock_data
