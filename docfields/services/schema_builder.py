"""
Dynamic schema construction for extraction requests.

Turns an ordered list of field descriptors into:
- a pydantic model, created at runtime, that validates the model output and
  fills in defaults for optional fields
- a strict JSON schema that constrains the model's structured output

Both are produced by the same dispatch over FieldKind so they can never
disagree about a field.
"""

import logging
from collections import Counter
from collections.abc import Callable, Mapping, Sequence
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    create_model,
)

from ..errors import SchemaBuildError
from ..models import FieldDescriptor, FieldKind, ItemKind

logger = logging.getLogger(__name__)

EXTRACTION_SCHEMA_NAME = "ExtractedData"

DATE_FIELD_HINT = "Date in ISO 8601 format (YYYY-MM-DD)"

Number = StrictInt | StrictFloat


# =============================================================================
# Per-kind Dispatch
# =============================================================================


def _value_type(field: FieldDescriptor) -> Any:
    """Python type used to validate a value of this field."""
    if field.kind in (FieldKind.TEXT, FieldKind.DATE):
        return StrictStr
    if field.kind == FieldKind.NUMBER:
        return Number
    if field.kind == FieldKind.BOOLEAN:
        return StrictBool
    if field.kind == FieldKind.ARRAY:
        if field.effective_item_kind == ItemKind.NUMBER:
            return list[Number]
        return list[StrictStr]
    raise SchemaBuildError(f"field '{field.name}': unsupported kind '{field.kind}'")


def _value_json_schema(field: FieldDescriptor) -> dict[str, Any]:
    """JSON schema fragment for a value of this field (non-nullable)."""
    if field.kind in (FieldKind.TEXT, FieldKind.DATE):
        return {"type": "string"}
    if field.kind == FieldKind.NUMBER:
        return {"type": "number"}
    if field.kind == FieldKind.BOOLEAN:
        return {"type": "boolean"}
    if field.kind == FieldKind.ARRAY:
        item_type = "number" if field.effective_item_kind == ItemKind.NUMBER else "string"
        return {"type": "array", "items": {"type": item_type}}
    raise SchemaBuildError(f"field '{field.name}': unsupported kind '{field.kind}'")


def default_factory_for(kind: FieldKind) -> Callable[[], Any]:
    """Factory producing the value an optional field takes when absent."""
    if kind in (FieldKind.TEXT, FieldKind.DATE):
        return str
    if kind == FieldKind.NUMBER:
        return int
    if kind == FieldKind.BOOLEAN:
        return bool
    if kind == FieldKind.ARRAY:
        return list
    raise SchemaBuildError(f"unsupported kind '{kind}'")


def _field_description(field: FieldDescriptor) -> str | None:
    if field.description:
        return field.description
    if field.kind == FieldKind.DATE:
        return DATE_FIELD_HINT
    return None


# =============================================================================
# Descriptor Parsing
# =============================================================================


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return ", ".join(parts)


def _coerce_descriptors(
    fields: Sequence[FieldDescriptor | Mapping[str, Any]],
) -> list[FieldDescriptor]:
    descriptors: list[FieldDescriptor] = []
    problems: list[str] = []

    for index, item in enumerate(fields):
        if isinstance(item, FieldDescriptor):
            descriptors.append(item)
            continue
        try:
            descriptors.append(FieldDescriptor.model_validate(item))
        except ValidationError as e:
            problems.append(f"field {index}: {_format_validation_error(e)}")

    if problems:
        raise SchemaBuildError(problems)
    return descriptors


def parse_field_descriptors(raw: Any) -> list[FieldDescriptor]:
    """
    Parse a decoded JSON value into field descriptors.

    Args:
        raw: Value decoded from the request's ``fields`` JSON.

    Returns:
        Validated descriptors in input order.

    Raises:
        SchemaBuildError: If the value is not a list or any element is malformed.
    """
    if not isinstance(raw, list):
        raise SchemaBuildError("fields must be a JSON array of field definitions")
    return _coerce_descriptors(raw)


# =============================================================================
# Schema Construction
# =============================================================================


class ExtractionSchema:
    """
    Validation contract derived from a set of field descriptors.

    Attributes:
        fields: The descriptors, in request order.
        model: Runtime pydantic model validating one extracted object.
        json_schema: Strict JSON schema handed to the model as output constraint.
    """

    def __init__(
        self,
        fields: list[FieldDescriptor],
        model: type[BaseModel],
        json_schema: dict[str, Any],
    ):
        self.fields = fields
        self.model = model
        self.json_schema = json_schema

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def validate(self, data: Any) -> dict[str, Any]:
        """
        Validate an extracted object. Values are never converted between kinds.

        Returns a dict keyed exactly by the field names, in request order, with
        defaults filled in for absent optional fields. Unknown keys are dropped.

        Raises:
            pydantic.ValidationError: If a required field is missing or a value
                has the wrong kind.
        """
        return self.model.model_validate(data).model_dump(by_alias=True)


def _null_to_default(factory: Callable[[], Any]) -> BeforeValidator:
    return BeforeValidator(lambda v: factory() if v is None else v)


def build_extraction_schema(
    fields: Sequence[FieldDescriptor | Mapping[str, Any]],
) -> ExtractionSchema:
    """
    Build the validation schema for an extraction request.

    Args:
        fields: Field descriptors (or raw mappings in wire format), in order.

    Returns:
        ExtractionSchema with the runtime model and the strict JSON schema.

    Raises:
        SchemaBuildError: If the list is empty, a descriptor is malformed or
            two descriptors share a name.
    """
    descriptors = _coerce_descriptors(fields)
    if not descriptors:
        raise SchemaBuildError("at least one field is required")

    counts = Counter(d.name for d in descriptors)
    duplicates = [name for name, count in counts.items() if count > 1]
    if duplicates:
        raise SchemaBuildError([f"duplicate field name '{name}'" for name in duplicates])

    definitions: dict[str, Any] = {}
    properties: dict[str, Any] = {}

    # Attributes are positional so that any name (including ones clashing with
    # BaseModel members or starting with "_") can be used as the alias.
    for index, field in enumerate(descriptors):
        value_type = _value_type(field)
        description = _field_description(field)
        property_schema = _value_json_schema(field)

        if field.required:
            definitions[f"field_{index}"] = (
                value_type,
                Field(..., alias=field.name, description=description),
            )
        else:
            factory = default_factory_for(field.kind)
            definitions[f"field_{index}"] = (
                Annotated[value_type, _null_to_default(factory)],
                Field(default_factory=factory, alias=field.name, description=description),
            )
            # Strict structured outputs require every key, so optional means nullable
            property_schema["type"] = [property_schema["type"], "null"]

        if description:
            property_schema["description"] = description
        properties[field.name] = property_schema

    model = create_model(
        EXTRACTION_SCHEMA_NAME,
        __config__=ConfigDict(extra="ignore"),
        **definitions,
    )

    json_schema = {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }

    logger.debug(
        "Built extraction schema with %d field(s): %s",
        len(descriptors),
        [d.name for d in descriptors],
    )

    return ExtractionSchema(descriptors, model, json_schema)
