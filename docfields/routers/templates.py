"""
Router for the built-in schema templates.

Handles:
- Listing templates (with category grouping)
- Getting a single template
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ..errors import NotFoundError
from ..templates import SchemaTemplate, get_template, list_templates, templates_by_category

router = APIRouter(prefix="/api/templates", tags=["templates"])


class TemplateListResponse(BaseModel):
    """Response model for listing templates."""

    templates: list[SchemaTemplate] = Field(default_factory=list)
    categories: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Template ids per category",
    )


@router.get("", response_model=TemplateListResponse)
async def get_templates() -> TemplateListResponse:
    """List all built-in schema templates."""
    return TemplateListResponse(
        templates=list_templates(),
        categories={
            category: [t.id for t in templates]
            for category, templates in templates_by_category().items()
        },
    )


@router.get("/{template_id}", response_model=SchemaTemplate)
async def get_template_by_id(template_id: str) -> SchemaTemplate:
    """Get a specific template by id."""
    try:
        return get_template(template_id)
    except KeyError:
        raise NotFoundError(f"Template {template_id} not found")
