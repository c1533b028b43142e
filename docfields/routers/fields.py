"""
Router for AI field suggestion.
"""

import logging

from fastapi import APIRouter, Depends

from ..errors import DocfieldsError, SuggestionError
from ..models import GenerateFieldsRequest, GenerateFieldsResponse
from ..services.ai import AIService, get_ai_service
from ..services.suggestion_service import SuggestionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["fields"])


def get_suggestion_service(
    ai_service: AIService = Depends(get_ai_service),
) -> SuggestionService:
    return SuggestionService(ai_service)


@router.post("/generate-fields", response_model=GenerateFieldsResponse)
async def generate_fields(
    request: GenerateFieldsRequest,
    service: SuggestionService = Depends(get_suggestion_service),
) -> GenerateFieldsResponse:
    """
    Suggest field descriptors for a free-text description.

    The result is only a suggestion; clients append it to their own list.
    """
    try:
        suggestion = await service.suggest(request.description)
    except DocfieldsError:
        raise
    except Exception as e:
        logger.exception("Unexpected error during field generation")
        raise SuggestionError(detail=f"Internal error: {e}") from e

    return GenerateFieldsResponse(
        fields=suggestion.fields,
        explanation=suggestion.explanation,
    )
