"""Appwrite-backed storage adapters.

The Appwrite SDK is synchronous, so every call runs in the default executor.
"""

import asyncio
from collections.abc import Callable
from functools import partial
from typing import Any, TypeVar

from appwrite.client import Client
from appwrite.enums.relationship_type import RelationshipType
from appwrite.exception import AppwriteException
from appwrite.id import ID
from appwrite.input_file import InputFile
from appwrite.permission import Permission
from appwrite.query import Query
from appwrite.role import Role
from appwrite.services.databases import Databases
from appwrite.services.functions import Functions
from appwrite.services.storage import Storage
from loguru import logger

from ..exceptions import NotFoundError, UpstreamError, ValidationError
from ..queries import DocumentQuery, Filter, Operator
from ..types import Document, DocumentList

T = TypeVar("T")

# Appwrite caps a single listing page at 100 documents in recent versions
MAX_PAGE_SIZE = 100

_QUERY_BUILDERS: dict[Operator, Callable[[str, Any], str]] = {
    Operator.EQUAL: Query.equal,
    Operator.NOT_EQUAL: Query.not_equal,
    Operator.GREATER: Query.greater_than,
    Operator.GREATER_EQUAL: Query.greater_than_equal,
    Operator.LESSER: Query.less_than,
    Operator.LESSER_EQUAL: Query.less_than_equal,
    Operator.SEARCH: Query.search,
    Operator.CONTAINS: Query.contains,
}


def filter_to_query(f: Filter) -> str:
    """Translate a single Filter into an Appwrite query string."""
    return _QUERY_BUILDERS[f.operator](f.field, f.value)


def to_appwrite_queries(query: DocumentQuery | None) -> list[str]:
    """Translate a DocumentQuery into Appwrite query strings."""
    if query is None:
        return []

    queries = [filter_to_query(f) for f in query.filters]
    if query.order_by:
        order = Query.order_desc if query.descending else Query.order_asc
        queries.append(order(query.order_by))
    if query.limit is not None:
        queries.append(Query.limit(query.limit))
    if query.offset is not None:
        queries.append(Query.offset(query.offset))
    return queries


def default_permissions(admin_team_id: str | None) -> list[str]:
    """Public read access; writes restricted to the admin team."""
    return [
        Permission.read(Role.any()),
        Permission.write(Role.team(admin_team_id or "admin")),
    ]


async def _call(
    func: Callable[[], T],
    resource_type: str = "Resource",
    resource_id: str = "",
) -> T:
    """Run a blocking SDK call in the executor and map Appwrite errors."""
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, func)
    except AppwriteException as e:
        if e.code == 404:
            raise NotFoundError(resource_type, resource_id) from e
        if e.code == 400:
            raise ValidationError(e.message) from e
        logger.error(f"Appwrite request failed ({e.code}): {e.message}")
        raise UpstreamError("appwrite", e.message or "Appwrite request failed") from e


class AppwriteDocumentStore:
    """Documents stored in an Appwrite database."""

    def __init__(self, client: Client, database_id: str, admin_team_id: str | None = None):
        self.databases = Databases(client)
        self.database_id = database_id
        self.admin_team_id = admin_team_id

    async def list_documents(
        self, collection_id: str, query: DocumentQuery | None = None
    ) -> DocumentList:
        queries = to_appwrite_queries(query)
        result = await _call(
            lambda: self.databases.list_documents(self.database_id, collection_id, queries),
            "Collection",
            collection_id,
        )
        return {"total": result["total"], "documents": result["documents"]}

    async def count_documents(
        self, collection_id: str, query: DocumentQuery | None = None
    ) -> int:
        filters = query.filters if query else []
        result = await self.list_documents(collection_id, DocumentQuery(filters=filters, limit=1))
        return result["total"]

    async def get_document(self, collection_id: str, document_id: str) -> Document:
        return await _call(
            lambda: self.databases.get_document(self.database_id, collection_id, document_id),
            "Document",
            document_id,
        )

    async def create_document(
        self, collection_id: str, data: dict[str, Any], document_id: str | None = None
    ) -> Document:
        permissions = default_permissions(self.admin_team_id)
        return await _call(
            lambda: self.databases.create_document(
                self.database_id,
                collection_id,
                document_id or ID.unique(),
                data,
                permissions,
            ),
            "Collection",
            collection_id,
        )

    async def update_document(
        self, collection_id: str, document_id: str, data: dict[str, Any]
    ) -> Document:
        return await _call(
            lambda: self.databases.update_document(
                self.database_id, collection_id, document_id, data
            ),
            "Document",
            document_id,
        )

    async def delete_document(self, collection_id: str, document_id: str) -> None:
        await _call(
            lambda: self.databases.delete_document(self.database_id, collection_id, document_id),
            "Document",
            document_id,
        )


class AppwriteSchemaStore:
    """Collections and attributes of an Appwrite database."""

    def __init__(self, client: Client, database_id: str, admin_team_id: str | None = None):
        self.databases = Databases(client)
        self.database_id = database_id
        self.admin_team_id = admin_team_id

    async def list_collections(self) -> list[dict[str, Any]]:
        result = await _call(lambda: self.databases.list_collections(self.database_id))
        return result["collections"]

    async def get_collection(self, collection_id: str) -> dict[str, Any]:
        return await _call(
            lambda: self.databases.get_collection(self.database_id, collection_id),
            "Collection",
            collection_id,
        )

    async def create_collection(self, collection_id: str, name: str) -> dict[str, Any]:
        permissions = default_permissions(self.admin_team_id)
        return await _call(
            lambda: self.databases.create_collection(
                self.database_id, collection_id, name, permissions
            ),
            "Collection",
            collection_id,
        )

    async def update_collection(self, collection_id: str, name: str) -> dict[str, Any]:
        return await _call(
            lambda: self.databases.update_collection(self.database_id, collection_id, name),
            "Collection",
            collection_id,
        )

    async def delete_collection(self, collection_id: str) -> None:
        await _call(
            lambda: self.databases.delete_collection(self.database_id, collection_id),
            "Collection",
            collection_id,
        )

    async def list_attributes(self, collection_id: str) -> list[dict[str, Any]]:
        result = await _call(
            lambda: self.databases.list_attributes(self.database_id, collection_id),
            "Collection",
            collection_id,
        )
        return result["attributes"]

    async def create_attribute(
        self, collection_id: str, kind: str, key: str, **options: Any
    ) -> dict[str, Any]:
        db = self.database_id
        required = options.get("required", False)
        default = options.get("default")
        array = options.get("array", False)

        match kind:
            case "string":
                call = partial(
                    self.databases.create_string_attribute,
                    db, collection_id, key, options.get("size", 255), required, default, array,
                )
            case "integer" | "float":
                create = (
                    self.databases.create_integer_attribute
                    if kind == "integer"
                    else self.databases.create_float_attribute
                )
                call = partial(create, db, collection_id, key, required, None, None, default, array)
            case "boolean":
                call = partial(
                    self.databases.create_boolean_attribute,
                    db, collection_id, key, required, default, array,
                )
            case "datetime":
                call = partial(
                    self.databases.create_datetime_attribute,
                    db, collection_id, key, required, default, array,
                )
            case "enum":
                call = partial(
                    self.databases.create_enum_attribute,
                    db, collection_id, key, options["elements"], required, default, array,
                )
            case "relationship":
                call = partial(
                    self.databases.create_relationship_attribute,
                    db,
                    collection_id,
                    options["related_collection_id"],
                    options.get("relation_type", RelationshipType.MANYTOONE),
                    False,
                    key,
                )
            case _:
                raise ValidationError(f"Unsupported attribute type: {kind}", field=key)

        return await _call(call, "Collection", collection_id)


class AppwriteFileStore:
    """Files in one Appwrite storage bucket."""

    def __init__(self, client: Client, bucket_id: str):
        self.storage = Storage(client)
        self.bucket_id = bucket_id

    async def create_file(
        self,
        file_id: str,
        filename: str,
        data: bytes,
        permissions: list[str] | None = None,
    ) -> dict[str, Any]:
        return await _call(
            lambda: self.storage.create_file(
                self.bucket_id, file_id, InputFile.from_bytes(data, filename), permissions
            ),
            "File",
            file_id,
        )

    async def get_file(self, file_id: str) -> dict[str, Any]:
        return await _call(lambda: self.storage.get_file(self.bucket_id, file_id), "File", file_id)

    async def list_files(self) -> list[dict[str, Any]]:
        result = await _call(lambda: self.storage.list_files(self.bucket_id))
        return result["files"]

    async def delete_file(self, file_id: str) -> None:
        await _call(lambda: self.storage.delete_file(self.bucket_id, file_id), "File", file_id)


class AppwriteFunctionRunner:
    """Appwrite function executions."""

    def __init__(self, client: Client):
        self.functions = Functions(client)

    async def create_execution(
        self, function_id: str, body: str, asynchronous: bool = True
    ) -> dict[str, Any]:
        return await _call(
            lambda: self.functions.create_execution(function_id, body, asynchronous),
            "Function",
            function_id,
        )
