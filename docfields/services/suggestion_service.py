"""
AI field suggestion: propose field descriptors from a free-text description.
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import InputError, SuggestionError
from ..models import FieldDescriptor, FieldKind, FieldSuggestion, ItemKind
from ..templates import match_template
from .ai import AIService, AIServiceError
from .ai.prompts import SUGGESTION_SYSTEM_PROMPT, build_suggestion_prompt

logger = logging.getLogger(__name__)

SUGGESTION_SCHEMA_NAME = "GeneratedFields"


# =============================================================================
# AI Response Models
# =============================================================================


class SuggestedField(BaseModel):
    """A field proposed by the model."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Field name in camelCase")
    type: FieldKind = Field(..., description="Field data type")
    description: str = Field(..., description="Description of what this field should contain")
    required: bool | None = Field(
        default=None,
        description="Whether this field is required (true or false)",
    )
    item_type: ItemKind | None = Field(
        default=None,
        alias="itemType",
        description="For array fields, the type of items in the array",
    )


class FieldSuggestionResponse(BaseModel):
    """Response model for field suggestion."""

    fields: list[SuggestedField]
    explanation: str = Field(..., description="Brief explanation of the generated fields")


SUGGESTION_JSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "fields": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Field name in camelCase"},
                    "type": {
                        "type": "string",
                        "enum": [kind.value for kind in FieldKind],
                        "description": "Field data type",
                    },
                    "description": {
                        "type": "string",
                        "description": "Description of what this field should contain",
                    },
                    "required": {
                        "type": ["boolean", "null"],
                        "description": "Whether this field is required (true or false)",
                    },
                    "itemType": {
                        "type": ["string", "null"],
                        "enum": [kind.value for kind in ItemKind] + [None],
                        "description": "For array fields, the type of items in the array",
                    },
                },
                "required": ["name", "type", "description", "required", "itemType"],
                "additionalProperties": False,
            },
        },
        "explanation": {
            "type": "string",
            "description": "Brief explanation of the generated fields",
        },
    },
    "required": ["fields", "explanation"],
    "additionalProperties": False,
}


def to_field_descriptors(suggested: list[SuggestedField]) -> list[FieldDescriptor]:
    """
    Convert suggested fields into descriptors that always build into a schema.

    Missing ``required`` flags become False. Blank names and repeated names
    are dropped, keeping the first occurrence.
    """
    descriptors: list[FieldDescriptor] = []
    seen: set[str] = set()

    for field in suggested:
        name = field.name.strip()
        if not name:
            logger.warning("Dropping suggested field with an empty name")
            continue
        if name in seen:
            logger.warning("Dropping duplicate suggested field '%s'", name)
            continue
        seen.add(name)
        descriptors.append(
            FieldDescriptor(
                name=name,
                kind=field.type,
                description=field.description,
                required=field.required if field.required is not None else False,
                item_kind=field.item_type if field.type == FieldKind.ARRAY else None,
            )
        )
    return descriptors


class SuggestionService:
    """Asks the model to propose field descriptors for a described document."""

    def __init__(self, ai_service: AIService):
        self.ai_service = ai_service

    async def suggest(self, description: str) -> FieldSuggestion:
        """
        Suggest fields for a free-text description.

        Args:
            description: What the user wants to extract, e.g. "business card contact info".

        Returns:
            FieldSuggestion with descriptors and the model's explanation.

        Raises:
            InputError: If the description is blank.
            SuggestionError: If the model call fails or returns unusable fields.
        """
        description = (description or "").strip()
        if not description:
            raise InputError("Description is required")

        logger.info("Generating field suggestions for: %s", description[:100])

        try:
            raw = await self.ai_service.generate_object(
                build_suggestion_prompt(description),
                schema_name=SUGGESTION_SCHEMA_NAME,
                json_schema=SUGGESTION_JSON_SCHEMA,
                system_prompt=SUGGESTION_SYSTEM_PROMPT,
                mock=lambda: _mock_suggestion(description),
            )
        except AIServiceError as e:
            logger.error("Field suggestion call failed (%s): %s", e.failure.value, e)
            raise SuggestionError(detail=str(e)) from e

        try:
            response = FieldSuggestionResponse.model_validate(raw)
        except ValidationError as e:
            logger.error("Field suggestion response failed validation: %s", e)
            raise SuggestionError(detail=str(e)) from e

        fields = to_field_descriptors(response.fields)
        if not fields:
            raise SuggestionError(detail="Model returned no usable fields")

        logger.info("Suggested %d field(s)", len(fields))
        return FieldSuggestion(fields=fields, explanation=response.explanation)


def _mock_suggestion(description: str) -> dict[str, Any]:
    """Mock response for development: the closest shipped template's fields."""
    template = match_template(description)
    return {
        "fields": [
            {
                "name": f.name,
                "type": f.kind.value,
                "description": f.description or "",
                "required": f.required,
                "itemType": f.item_kind.value if f.item_kind else None,
            }
            for f in template.fields
        ],
        "explanation": (
            f"DEVELOPMENT MODE: fields copied from the '{template.name}' template. "
            "Set OPENAI_API_KEY for real suggestions."
        ),
    }
