"""In-memory storage for local development and tests."""

import json
import uuid
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from ..exceptions import NotFoundError, ValidationError
from ..queries import DocumentQuery
from ..types import Document, DocumentList


def _now() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds")


def _sort_key(value: Any) -> tuple[bool, Any]:
    # None sorts last in ascending order
    return (value is None, value if value is not None else 0)


class MemoryDocumentStore:
    """Dict-backed documents shaped like Appwrite's."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}

    def seed(
        self,
        collection_id: str,
        data: dict[str, Any],
        created_at: datetime | None = None,
        document_id: str | None = None,
    ) -> Document:
        """Insert a document directly, optionally with a fixed creation time."""
        timestamp = (created_at or datetime.now(UTC)).isoformat(timespec="milliseconds")
        doc_id = document_id or uuid.uuid4().hex[:20]
        document = {
            **data,
            "$id": doc_id,
            "$collectionId": collection_id,
            "$databaseId": "memory",
            "$createdAt": timestamp,
            "$updatedAt": timestamp,
            "$permissions": [],
        }
        self._collections.setdefault(collection_id, {})[doc_id] = document
        return dict(document)

    def _filtered(self, collection_id: str, query: DocumentQuery | None) -> list[Document]:
        documents = list(self._collections.get(collection_id, {}).values())
        if query is None:
            return documents

        documents = [d for d in documents if all(f.matches(d) for f in query.filters)]
        if query.order_by:
            order_by = query.order_by
            documents.sort(key=lambda d: _sort_key(d.get(order_by)), reverse=query.descending)
        return documents

    async def list_documents(
        self, collection_id: str, query: DocumentQuery | None = None
    ) -> DocumentList:
        documents = self._filtered(collection_id, query)
        offset = (query.offset if query else None) or 0
        limit = query.limit if query and query.limit is not None else 25
        page = documents[offset : offset + limit]
        return {"total": len(documents), "documents": [dict(d) for d in page]}

    async def count_documents(
        self, collection_id: str, query: DocumentQuery | None = None
    ) -> int:
        return len(self._filtered(collection_id, query))

    async def get_document(self, collection_id: str, document_id: str) -> Document:
        try:
            return dict(self._collections[collection_id][document_id])
        except KeyError as e:
            raise NotFoundError("Document", document_id) from e

    async def create_document(
        self, collection_id: str, data: dict[str, Any], document_id: str | None = None
    ) -> Document:
        if document_id and document_id in self._collections.get(collection_id, {}):
            raise ValidationError(f"Document with the requested ID {document_id} already exists")
        return self.seed(collection_id, data, document_id=document_id)

    async def update_document(
        self, collection_id: str, document_id: str, data: dict[str, Any]
    ) -> Document:
        document = self._collections.get(collection_id, {}).get(document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        document.update({k: v for k, v in data.items() if not k.startswith("$")})
        document["$updatedAt"] = _now()
        return dict(document)

    async def delete_document(self, collection_id: str, document_id: str) -> None:
        if self._collections.get(collection_id, {}).pop(document_id, None) is None:
            raise NotFoundError("Document", document_id)


class MemorySchemaStore:
    """Collections and attributes held in memory."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Any]] = {}

    def _get(self, collection_id: str) -> dict[str, Any]:
        try:
            return self._collections[collection_id]
        except KeyError as e:
            raise NotFoundError("Collection", collection_id) from e

    async def list_collections(self) -> list[dict[str, Any]]:
        return [self._public(c) for c in self._collections.values()]

    async def get_collection(self, collection_id: str) -> dict[str, Any]:
        return self._public(self._get(collection_id))

    async def create_collection(self, collection_id: str, name: str) -> dict[str, Any]:
        if collection_id in self._collections:
            raise ValidationError(f"Collection with the requested ID {collection_id} already exists")
        now = _now()
        self._collections[collection_id] = {
            "$id": collection_id,
            "$createdAt": now,
            "$updatedAt": now,
            "name": name,
            "enabled": True,
            "attributes": [],
        }
        return self._public(self._collections[collection_id])

    async def update_collection(self, collection_id: str, name: str) -> dict[str, Any]:
        collection = self._get(collection_id)
        collection["name"] = name
        collection["$updatedAt"] = _now()
        return self._public(collection)

    async def delete_collection(self, collection_id: str) -> None:
        self._get(collection_id)
        del self._collections[collection_id]

    async def list_attributes(self, collection_id: str) -> list[dict[str, Any]]:
        return list(self._get(collection_id)["attributes"])

    async def create_attribute(
        self, collection_id: str, kind: str, key: str, **options: Any
    ) -> dict[str, Any]:
        attribute: dict[str, Any] = {
            "key": key,
            "type": kind,
            "required": options.get("required", False),
            "array": options.get("array", False),
            "default": options.get("default"),
            "status": "available",
        }
        if kind == "enum":
            attribute["format"] = "enum"
            attribute["type"] = "string"
            attribute["elements"] = list(options["elements"])
        elif kind == "relationship":
            attribute["relatedCollection"] = options["related_collection_id"]
        self._get(collection_id)["attributes"].append(attribute)
        return dict(attribute)

    @staticmethod
    def _public(collection: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in collection.items() if k != "attributes"}


class MemoryFileStore:
    """Files held in memory, shaped like Appwrite file records."""

    def __init__(self, bucket_id: str = "memory") -> None:
        self.bucket_id = bucket_id
        self._files: dict[str, tuple[dict[str, Any], bytes]] = {}

    async def create_file(
        self,
        file_id: str,
        filename: str,
        data: bytes,
        permissions: list[str] | None = None,
    ) -> dict[str, Any]:
        now = _now()
        record = {
            "$id": file_id,
            "bucketId": self.bucket_id,
            "$createdAt": now,
            "$updatedAt": now,
            "$permissions": permissions or [],
            "name": filename,
            "signature": uuid.uuid5(uuid.NAMESPACE_OID, file_id).hex,
            "mimeType": "application/octet-stream",
            "sizeOriginal": len(data),
            "chunksTotal": 1,
            "chunksUploaded": 1,
        }
        self._files[file_id] = (record, data)
        return dict(record)

    async def get_file(self, file_id: str) -> dict[str, Any]:
        try:
            return dict(self._files[file_id][0])
        except KeyError as e:
            raise NotFoundError("File", file_id) from e

    async def list_files(self) -> list[dict[str, Any]]:
        return [dict(record) for record, _ in self._files.values()]

    async def delete_file(self, file_id: str) -> None:
        if self._files.pop(file_id, None) is None:
            raise NotFoundError("File", file_id)


class MemoryFunctionRunner:
    """Records executions instead of running them."""

    def __init__(self) -> None:
        self.executions: list[dict[str, Any]] = []

    async def create_execution(
        self, function_id: str, body: str, asynchronous: bool = True
    ) -> dict[str, Any]:
        execution = {
            "$id": uuid.uuid4().hex[:20],
            "functionId": function_id,
            "status": "waiting" if asynchronous else "completed",
            "requestBody": body,
        }
        self.executions.append(execution)
        logger.debug(f"Recorded execution of {function_id}: {json.loads(body or '{}')}")
        return execution
