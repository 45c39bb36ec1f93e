"""Request and response models using Pydantic."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

FieldType = Literal["string", "number", "float", "boolean", "datetime", "enum", "relation"]
Duration = Literal["day", "week", "month"]


class CamelModel(BaseModel):
    """Accepts both the camelCase wire names and the Python field names."""

    model_config = ConfigDict(populate_by_name=True)


class CollectionField(CamelModel):
    """A single field of a collection schema."""

    name: str = Field(..., min_length=1)
    type: FieldType
    required: bool = False
    is_array: bool = Field(False, alias="isArray")
    description: str | None = None
    default_value: str | None = Field(None, alias="defaultValue")
    relation_collection: str | None = Field(None, alias="relationCollection")
    enum_values: list[str] | None = Field(None, alias="enumValues")

    @model_validator(mode="after")
    def check_type_requirements(self) -> "CollectionField":
        if self.type == "enum" and not self.enum_values:
            raise PydanticCustomError(
                "enum_values_required",
                "Enum values are required for enum fields",
                {"field": self.name},
            )
        if self.type == "relation" and not self.relation_collection:
            raise PydanticCustomError(
                "relation_collection_required",
                "Relation collection is required for relation fields",
                {"field": self.name},
            )
        if self.type in ("number", "float") and self.default_value:
            try:
                float(self.default_value)
            except ValueError:
                raise PydanticCustomError(
                    "invalid_default_value",
                    "Invalid default value for {type} field: {value}",
                    {"field": self.name, "type": self.type, "value": self.default_value},
                ) from None
        return self


class CollectionRequest(CamelModel):
    """Create or update payload for a collection."""

    id: str | None = None
    name: str = Field(..., min_length=1, max_length=128)
    fields: list[CollectionField]


class CollectionResponse(CamelModel):
    """A collection as returned by the API."""

    id: str
    name: str
    fields: list[CollectionField]
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")
    enabled: bool = True


class BatchDocumentsRequest(CamelModel):
    """Payload for creating many documents at once."""

    documents: list[dict[str, Any]] = Field(..., min_length=1)
    skip_duplicate_slugs: bool = Field(True, alias="skipDuplicateSlugs")
    chunk_size: int = Field(10, alias="chunkSize", ge=1, le=100)


class TranslateRequest(CamelModel):
    """Text translation request."""

    text: str
    to: str
    from_: str | None = Field(None, alias="from")

    @field_validator("text", mode="before")
    @classmethod
    def validate_text(cls, value: Any) -> str:
        if not value or not isinstance(value, str):
            raise PydanticCustomError(
                "text_required", "Text is required and must be a string", {"input": value}
            )
        if len(value) > 1000:
            raise PydanticCustomError(
                "text_too_long",
                "Text is too long, maximum 1000 characters",
                {"length": len(value), "max_length": 1000},
            )
        return value

    @field_validator("to", mode="before")
    @classmethod
    def validate_to(cls, value: Any) -> str:
        if not isinstance(value, str) or len(value) < 2:
            raise PydanticCustomError(
                "target_language_required", "Target language code is required", {"input": value}
            )
        return value

    @field_validator("from_", mode="before")
    @classmethod
    def validate_from(cls, value: Any) -> str | None:
        if value is not None and (not isinstance(value, str) or len(value) < 2):
            raise PydanticCustomError(
                "source_language_invalid",
                "Source language code must be at least 2 characters",
                {"input": value},
            )
        return value


class DocumentIncreaseResponse(CamelModel):
    """Document counts per period for a collection."""

    collection_id: str = Field(alias="collectionId")
    duration: Duration
    periods: list[dict[str, Any]]


class UsageEvent(CamelModel):
    """Body of the usage-count function."""

    collection_type: Literal["object", "tag", "mood"] = Field(alias="collectionType")
    ids: list[str] = Field(..., min_length=1)
    meme_id: str | None = Field(None, alias="memeId")
    event_type: str = Field("upload", alias="eventType")
    user_id: str | None = Field(None, alias="userId")


class HealthResponse(BaseModel):
    """Liveness payload."""

    status: str = "ok"
    service: str = "meme-dock-api"
    timestamp: datetime | None = None
