"""
Built-in schema templates.

Read-only bundles of field descriptors, grouped by category, that clients use
to pre-populate their field list.
"""

import re

from pydantic import BaseModel, ConfigDict, Field

from .models import FieldDescriptor, FieldKind, ItemKind


class SchemaTemplate(BaseModel):
    """A named, versioned set of field descriptors."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable template identifier")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="What the template extracts")
    category: str = Field(..., description="Grouping shown to the user")
    version: str = Field(default="1.0", description="Template version")
    fields: list[FieldDescriptor] = Field(..., min_length=1)


def _text(name: str, description: str, required: bool = False) -> FieldDescriptor:
    return FieldDescriptor(
        name=name, kind=FieldKind.TEXT, description=description, required=required
    )


def _field(kind: FieldKind, name: str, description: str, required: bool = False) -> FieldDescriptor:
    return FieldDescriptor(name=name, kind=kind, description=description, required=required)


def _text_list(name: str, description: str, required: bool = False) -> FieldDescriptor:
    return FieldDescriptor(
        name=name,
        kind=FieldKind.ARRAY,
        description=description,
        required=required,
        item_kind=ItemKind.TEXT,
    )


SCHEMA_TEMPLATES: tuple[SchemaTemplate, ...] = (
    SchemaTemplate(
        id="business-card",
        name="Business Card",
        description="Extract contact information from business cards",
        category="Contact",
        fields=[
            _text("fullName", "Full name of the person", required=True),
            _text("jobTitle", "Job title or position"),
            _text("company", "Company or organization name"),
            _text("email", "Email address"),
            _text("phone", "Phone number"),
            _text("website", "Website URL"),
            _text("address", "Physical address"),
        ],
    ),
    SchemaTemplate(
        id="invoice",
        name="Invoice",
        description="Extract key information from invoices",
        category="Financial",
        fields=[
            _text("invoiceNumber", "Invoice number or ID", required=True),
            _field(FieldKind.DATE, "invoiceDate", "Date of invoice", required=True),
            _field(FieldKind.DATE, "dueDate", "Due date for payment"),
            _text("vendorName", "Vendor or company name", required=True),
            _text("clientName", "Client or customer name", required=True),
            _field(FieldKind.NUMBER, "subtotal", "Subtotal amount"),
            _field(FieldKind.NUMBER, "tax", "Tax amount"),
            _field(FieldKind.NUMBER, "total", "Total amount due", required=True),
            _text("currency", "Currency code (e.g., USD, EUR)"),
        ],
    ),
    SchemaTemplate(
        id="resume",
        name="Resume/CV",
        description="Extract personal and professional information from resumes",
        category="HR",
        fields=[
            _text("fullName", "Full name", required=True),
            _text("email", "Email address"),
            _text("phone", "Phone number"),
            _text("location", "Location or address"),
            _text("currentPosition", "Current job title"),
            _text_list("skills", "List of skills"),
            _text_list("experience", "Work experience entries"),
            _text("education", "Educational background"),
        ],
    ),
    SchemaTemplate(
        id="product-catalog",
        name="Product Information",
        description="Extract product details from catalogs or descriptions",
        category="E-commerce",
        fields=[
            _text("productName", "Product name or title", required=True),
            _text("sku", "Product SKU or model number"),
            _text("description", "Product description"),
            _field(FieldKind.NUMBER, "price", "Product price"),
            _text("currency", "Currency code"),
            _text("category", "Product category"),
            _text("brand", "Brand name"),
            _text_list("features", "Product features"),
            _text("availability", "Stock status"),
        ],
    ),
    SchemaTemplate(
        id="research-paper",
        name="Research Paper",
        description="Extract metadata from academic papers",
        category="Academic",
        fields=[
            _text("title", "Paper title", required=True),
            _text_list("authors", "List of authors", required=True),
            _text("abstract", "Paper abstract"),
            _text_list("keywords", "Keywords or tags"),
            _text("journal", "Journal or publication name"),
            _field(FieldKind.DATE, "publicationDate", "Publication date"),
            _text("doi", "DOI identifier"),
        ],
    ),
    SchemaTemplate(
        id="event-info",
        name="Event Information",
        description="Extract details from event announcements or flyers",
        category="Events",
        fields=[
            _text("eventName", "Event title or name", required=True),
            _field(FieldKind.DATE, "eventDate", "Event date", required=True),
            _text("startTime", "Start time"),
            _text("endTime", "End time"),
            _text("location", "Event location or venue"),
            _text("description", "Event description"),
            _text("organizer", "Event organizer"),
            _text("contactInfo", "Contact information"),
            _field(FieldKind.NUMBER, "price", "Ticket price"),
        ],
    ),
)

_TEMPLATES_BY_ID = {template.id: template for template in SCHEMA_TEMPLATES}


def list_templates() -> list[SchemaTemplate]:
    """All templates in declaration order."""
    return list(SCHEMA_TEMPLATES)


def get_template(template_id: str) -> SchemaTemplate:
    """
    Look up a template by id.

    Raises:
        KeyError: If no template has this id.
    """
    return _TEMPLATES_BY_ID[template_id]


def templates_by_category() -> dict[str, list[SchemaTemplate]]:
    """Templates grouped by category, categories in first-seen order."""
    grouped: dict[str, list[SchemaTemplate]] = {}
    for template in SCHEMA_TEMPLATES:
        grouped.setdefault(template.category, []).append(template)
    return grouped


def _words(text: str) -> set[str]:
    return set(re.findall(r"[a-z]+", text.lower()))


def match_template(description: str) -> SchemaTemplate:
    """
    Pick the template whose name, category and description best overlap the
    words of ``description``. Falls back to the first template.
    """
    wanted = _words(description)
    best = SCHEMA_TEMPLATES[0]
    best_score = 0
    for template in SCHEMA_TEMPLATES:
        score = len(wanted & _words(f"{template.name} {template.category} {template.description}"))
        if score > best_score:
            best, best_score = template, score
    return best
