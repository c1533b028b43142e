"""
Router for structured extraction.

Handles:
- Document upload with field descriptors (or a description to derive them from)
"""

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..config import Settings, get_settings
from ..errors import DocfieldsError, ExtractionError, InputError
from ..models import ExtractionResponse, FieldDescriptor, UploadedDocument
from ..services.ai import AIService, get_ai_service
from ..services.document_service import DocumentService, get_document_service
from ..services.extraction_service import ExtractionService
from ..services.schema_builder import parse_field_descriptors
from ..services.suggestion_service import SuggestionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["extraction"])


def get_extraction_service(
    ai_service: AIService = Depends(get_ai_service),
    document_service: DocumentService = Depends(get_document_service),
    settings: Settings = Depends(get_settings),
) -> ExtractionService:
    return ExtractionService(
        ai_service,
        document_service,
        suggestion_service=SuggestionService(ai_service),
        max_upload_bytes=settings.max_upload_bytes,
    )


def parse_fields_form(fields_json: str | None) -> list[FieldDescriptor]:
    """
    Decode the ``fields`` form value.

    Returns an empty list when the value is missing or blank.

    Raises:
        InputError: If the value is not a JSON array.
        SchemaBuildError: If an element is not a valid field descriptor.
    """
    if fields_json is None or not fields_json.strip():
        return []

    try:
        raw = json.loads(fields_json)
    except json.JSONDecodeError as e:
        raise InputError("Invalid JSON in fields", detail=str(e)) from e

    if not isinstance(raw, list):
        raise InputError("Fields must be a JSON array of field definitions")
    return parse_field_descriptors(raw)


@router.post("/extract", response_model=ExtractionResponse)
async def extract(
    file: Annotated[UploadFile | None, File(description="PDF or text document")] = None,
    fields: Annotated[str | None, Form(description="JSON array of field descriptors")] = None,
    description: Annotated[str | None, Form(description="What to extract, used when no fields are given")] = None,
    context: Annotated[str | None, Form(description="Extra instructions for the model")] = None,
    service: ExtractionService = Depends(get_extraction_service),
) -> ExtractionResponse:
    """
    Extract structured data from an uploaded document.

    A non-empty ``fields`` list takes precedence over ``description``; the
    description is only used to suggest fields when no list is given.
    """
    if file is None:
        raise InputError("No file uploaded")

    try:
        field_list = parse_fields_form(fields)
        has_description = bool(description and description.strip())

        if not field_list and not has_description:
            raise InputError("Fields must be provided")

        document = UploadedDocument(
            filename=file.filename or "",
            content_type=file.content_type,
            content=await file.read(),
        )

        if field_list:
            if has_description:
                logger.info("Both fields and description supplied, using fields")
            result = await service.extract(document, field_list, context)
        else:
            result = await service.extract_with_description(document, description, context)

        return ExtractionResponse.from_result(result)

    except DocfieldsError:
        raise
    except Exception as e:
        logger.exception("Unexpected error during extraction")
        raise ExtractionError(detail=f"Internal error: {e}") from e
    finally:
        await file.close()
