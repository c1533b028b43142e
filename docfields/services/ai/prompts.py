"""
Prompts for structured extraction and field suggestion.
"""

from ...models import FieldDescriptor, FieldKind


# =============================================================================
# Extraction
# =============================================================================

EXTRACTION_SYSTEM_PROMPT = """You are a precise Data Entry Clerk with exceptional attention to detail.
Your task is to extract specific data fields from the text of a document.

## Extraction Rules:

1. **Strict Adherence**: Only extract the fields specified. Do not add extra fields.
2. **Accuracy Over Guessing**: If an optional value is not present, return null. DO NOT HALLUCINATE.
3. **Required Fields**: Always provide a value for fields marked REQUIRED, using your best reading of the document.
4. **Types**: Numbers must be plain numbers without currency symbols or thousands separators.
   Dates must be ISO 8601 strings (YYYY-MM-DD). Lists must contain every item found.

Return data in the EXACT JSON format specified by the response schema."""


def _describe_field(field: FieldDescriptor) -> str:
    kind = field.kind.value
    if field.kind == FieldKind.ARRAY:
        kind = f"array of {field.effective_item_kind.value}"
    marker = "REQUIRED" if field.required else "optional"
    line = f"- **{field.name}** ({kind}, {marker})"
    if field.description:
        line += f": {field.description}"
    return line


def build_extraction_prompt(
    fields: list[FieldDescriptor],
    document_text: str,
    context: str | None = None,
) -> str:
    """
    Build the user prompt for an extraction call.

    Args:
        fields: Fields to extract, in request order.
        document_text: Text extracted from the uploaded document.
        context: Optional free-text instruction from the user.

    Returns:
        The prompt string.
    """
    fields_text = "\n".join(_describe_field(f) for f in fields)
    prompt = f"""Extract the requested information from this document.

## Fields to Extract:
{fields_text}

## Document:
{document_text}"""

    if context and context.strip():
        prompt += f"\n\n## Context:\n{context.strip()}"
    return prompt


# =============================================================================
# Field Suggestion
# =============================================================================

SUGGESTION_SYSTEM_PROMPT = """You are a Senior Data Architect specializing in document digitization.
Your goal is to design the set of fields a user should extract from a kind of document."""


def build_suggestion_prompt(description: str) -> str:
    """Build the user prompt for a field suggestion call."""
    return f"""Generate appropriate field definitions for: "{description}"

Rules:
1. Use camelCase field names (e.g., firstName, phoneNumber)
2. Choose appropriate data types: text, number, boolean, date, array
3. For each field, set required: true for essential fields, required: false for optional ones
4. Generate 3-8 relevant fields with clear descriptions
5. For arrays, specify itemType (text or number)
6. Field names must be unique"""
