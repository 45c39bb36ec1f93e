"""Collection schema management."""

import asyncio
import uuid
from typing import Any

from loguru import logger

from ..exceptions import NotFoundError, ValidationError
from ..models import CollectionField, CollectionRequest
from ..storage import SchemaStore

APPWRITE_TYPE_TO_FIELD_TYPE = {
    "string": "string",
    "email": "string",
    "ip": "string",
    "url": "string",
    "integer": "number",
    "float": "number",
    "double": "number",
    "boolean": "boolean",
    "datetime": "datetime",
    "relationship": "relation",
    "enum": "enum",
}

STRING_ATTRIBUTE_SIZE = 255


def _numeric_default(field: CollectionField, cast: type[int] | type[float]) -> int | float | None:
    # "1.5" on an integer field truncates to 1
    if not field.default_value:
        return None
    try:
        return cast(float(field.default_value))
    except (ValueError, OverflowError):
        raise ValidationError(
            f"Invalid default value for {field.type} field: {field.default_value}",
            field=field.name,
        ) from None


def map_attribute_to_field(attribute: dict[str, Any]) -> dict[str, Any]:
    """Describe an Appwrite attribute as a collection field."""
    kind = "enum" if attribute.get("format") == "enum" else attribute.get("type", "string")
    field: dict[str, Any] = {
        "name": attribute["key"],
        "type": APPWRITE_TYPE_TO_FIELD_TYPE.get(kind, "string"),
        "required": attribute.get("required", False),
        "isArray": attribute.get("array") or False,
    }
    if kind == "enum" and attribute.get("elements"):
        field["enumValues"] = attribute["elements"]
    if kind == "relationship" and attribute.get("relatedCollection"):
        field["relationCollection"] = attribute["relatedCollection"]
    return field


def attribute_options(field: CollectionField) -> tuple[str, dict[str, Any]]:
    """Map a collection field to an Appwrite attribute kind and its options.

    Raises:
        ValidationError: For unsupported types, missing enum/relation settings or
            numeric defaults that do not parse.
    """
    options: dict[str, Any] = {"required": field.required, "array": field.is_array}
    default = field.default_value

    match field.type:
        case "string":
            return "string", {**options, "size": STRING_ATTRIBUTE_SIZE, "default": default}
        case "number":
            return "integer", {**options, "default": _numeric_default(field, int)}
        case "float":
            return "float", {**options, "default": _numeric_default(field, float)}
        case "boolean":
            return "boolean", {**options, "default": default == "true" if default else None}
        case "datetime":
            return "datetime", {**options, "default": default}
        case "enum":
            if not field.enum_values:
                raise ValidationError("Enum values are required for enum fields", field=field.name)
            return "enum", {**options, "elements": field.enum_values, "default": default}
        case "relation":
            if not field.relation_collection:
                raise ValidationError(
                    "Relation collection is required for relation fields", field=field.name
                )
            return "relationship", {"related_collection_id": field.relation_collection}

    raise ValidationError(f"Unsupported field type: {field.type}", field=field.name)


def _response(collection: dict[str, Any], fields: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "id": collection["$id"],
        "name": collection["name"],
        "fields": fields,
        "createdAt": collection.get("$createdAt"),
        "updatedAt": collection.get("$updatedAt"),
        "enabled": collection.get("enabled", True),
    }


def _request_fields(req: CollectionRequest) -> list[dict[str, Any]]:
    return [f.model_dump(by_alias=True, exclude_none=True) for f in req.fields]


class CollectionService:
    """Creates and describes the collections of the database."""

    def __init__(self, schema: SchemaStore):
        self.schema = schema

    async def _add_field(self, collection_id: str, field: CollectionField) -> None:
        kind, options = attribute_options(field)
        await self.schema.create_attribute(collection_id, kind, field.name, **options)

    async def get_collections(self) -> list[dict[str, Any]]:
        """Get every collection with its fields."""
        collections = await self.schema.list_collections()
        attribute_lists = await asyncio.gather(
            *(self.schema.list_attributes(c["$id"]) for c in collections)
        )
        return [
            _response(collection, [map_attribute_to_field(a) for a in attributes])
            for collection, attributes in zip(collections, attribute_lists, strict=True)
        ]

    async def create_collection(self, req: CollectionRequest) -> dict[str, Any]:
        """Create a collection and one attribute per field, in order."""
        collection_id = req.id or uuid.uuid4().hex[:20]
        attributes = [(field.name, *attribute_options(field)) for field in req.fields]
        created = await self.schema.create_collection(collection_id, req.name)

        for key, kind, options in attributes:
            await self.schema.create_attribute(created["$id"], kind, key, **options)

        logger.info(f"Created collection {created['$id']} with {len(req.fields)} fields")
        return _response(created, _request_fields(req))

    async def update_collection(self, collection_id: str, req: CollectionRequest) -> dict[str, Any]:
        """Rename a collection and add any fields it does not have yet.

        Existing fields are never modified.

        Raises:
            NotFoundError: If the collection does not exist.
        """
        try:
            existing = await self.schema.get_collection(collection_id)
        except NotFoundError:
            raise NotFoundError("Collection", collection_id) from None

        if req.name and req.name != existing.get("name"):
            existing = await self.schema.update_collection(collection_id, req.name)

        attributes = await self.schema.list_attributes(collection_id)
        existing_keys = {a["key"] for a in attributes}

        for field in req.fields:
            if field.name in existing_keys:
                logger.info(f"Field {field.name} already exists in {collection_id}, skipping")
                continue
            await self._add_field(collection_id, field)

        return _response(existing, _request_fields(req))

    async def create_collections(self, reqs: list[CollectionRequest]) -> list[dict[str, Any]]:
        """Create collections one after another, stopping at the first failure."""
        created = []
        for req in reqs:
            created.append(await self.create_collection(req))
        return created

    async def delete_collection(self, collection_id: str) -> None:
        await self.schema.delete_collection(collection_id)
        logger.info(f"Deleted collection {collection_id}")
