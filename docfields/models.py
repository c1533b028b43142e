"""
Pydantic models for the extraction pipeline.

Defines strict types for field descriptors, extraction results and the
request/response bodies of the HTTP API.
"""

from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
    model_validator,
)


class FieldKind(str, Enum):
    """Supported output field kinds."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"  # Free-form string, the model is asked for ISO 8601
    ARRAY = "array"


class ItemKind(str, Enum):
    """Element kinds allowed inside an array field."""

    TEXT = "text"
    NUMBER = "number"


class FieldDescriptor(BaseModel):
    """
    Definition of a single field to extract from a document.

    The wire format uses ``type`` and ``itemType`` (the shape the frontend
    sends); ``kind``/``itemKind`` are accepted as well. Serialising with
    ``model_dump()`` always produces the wire format, so descriptors coming
    out of suggestions or templates can be posted back unchanged.

    Attributes:
        name: Output key for the extracted value.
        kind: Expected value kind.
        description: Optional hint forwarded to the model.
        required: Whether the model must produce a value.
        item_kind: Element kind, only meaningful for array fields.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(
        ...,
        min_length=1,
        description="Output key for the extracted value",
        examples=["invoiceNumber", "total"],
    )
    kind: FieldKind = Field(
        ...,
        validation_alias=AliasChoices("type", "kind"),
        description="Expected value kind",
    )
    description: str | None = Field(
        default=None,
        description="Natural-language hint passed to the model",
    )
    required: bool = Field(
        default=False,
        description="Whether this field must be present",
    )
    item_kind: ItemKind | None = Field(
        default=None,
        validation_alias=AliasChoices("itemType", "itemKind", "item_kind"),
        description="Element kind for array fields",
    )

    @model_validator(mode="before")
    @classmethod
    def drop_item_kind_for_scalars(cls, data: Any) -> Any:
        """Element kind only applies to arrays; any value is ignored otherwise."""
        if isinstance(data, dict):
            kind = data.get("type", data.get("kind"))
            if kind != FieldKind.ARRAY.value:
                data = {
                    k: v
                    for k, v in data.items()
                    if k not in ("itemType", "itemKind", "item_kind")
                }
        return data

    @field_validator("name")
    @classmethod
    def reject_blank_name(cls, v: str) -> str:
        # Names are used verbatim as output keys
        if not v.strip():
            raise ValueError("name must not be blank")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def blank_description_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("required", mode="before")
    @classmethod
    def default_required(cls, v: Any) -> Any:
        """A missing (null) required flag means optional."""
        return False if v is None else v

    @property
    def effective_item_kind(self) -> ItemKind:
        """Element kind of an array field, text unless stated otherwise."""
        return self.item_kind or ItemKind.TEXT

    @model_serializer
    def serialize(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.kind.value,
            "description": self.description,
            "required": self.required,
        }
        if self.kind == FieldKind.ARRAY:
            data["itemType"] = self.effective_item_kind.value
        return data


class UploadedDocument(BaseModel):
    """An uploaded file as handed from the HTTP layer to the services."""

    filename: str = Field(default="", description="Original filename")
    content_type: str | None = Field(default=None, description="Declared media type")
    content: bytes = Field(default=b"", description="Raw file bytes")

    @property
    def size(self) -> int:
        return len(self.content)


class ExtractionResult(BaseModel):
    """
    Result of one successful extraction.

    ``data`` holds exactly one key per requested field, in request order.
    """

    data: dict[str, Any] = Field(..., description="Extracted values keyed by field name")
    source_file_name: str = Field(..., description="Original filename")
    source_file_size: int = Field(..., ge=0, description="File size in bytes")
    source_file_type: str = Field(default="", description="Declared media type")


class FieldSuggestion(BaseModel):
    """Field descriptors proposed by the model for a free-text description."""

    fields: list[FieldDescriptor] = Field(..., min_length=1)
    explanation: str = Field(default="")


# =============================================================================
# API Models
# =============================================================================


class ExtractionResponse(BaseModel):
    """Response body of the extraction endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: dict[str, Any]
    file_name: str = Field(..., alias="fileName")
    file_size: int = Field(..., alias="fileSize")
    file_type: str = Field(..., alias="fileType")

    @classmethod
    def from_result(cls, result: ExtractionResult) -> "ExtractionResponse":
        return cls(
            data=result.data,
            file_name=result.source_file_name,
            file_size=result.source_file_size,
            file_type=result.source_file_type,
        )


class GenerateFieldsRequest(BaseModel):
    """Request body of the field suggestion endpoint."""

    description: str | None = Field(default=None, description="What the user wants to extract")


class GenerateFieldsResponse(BaseModel):
    """Response body of the field suggestion endpoint."""

    success: bool = True
    fields: list[FieldDescriptor]
    explanation: str


class ErrorResponse(BaseModel):
    """Error body shared by every endpoint."""

    error: str
    details: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(default="1.0.0")
