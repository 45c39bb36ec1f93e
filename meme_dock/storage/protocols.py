"""Storage protocol definitions using typing.Protocol."""

from typing import Any, Protocol

from ..queries import DocumentQuery
from ..types import Document, DocumentList


class DocumentStore(Protocol):
    """Document persistence for one database."""

    async def list_documents(
        self, collection_id: str, query: DocumentQuery | None = None
    ) -> DocumentList:
        """List raw documents matching the query, with the total match count."""
        ...

    async def count_documents(
        self, collection_id: str, query: DocumentQuery | None = None
    ) -> int:
        """Count documents matching the query."""
        ...

    async def get_document(self, collection_id: str, document_id: str) -> Document:
        """Get a raw document. Raises NotFoundError when missing."""
        ...

    async def create_document(
        self, collection_id: str, data: dict[str, Any], document_id: str | None = None
    ) -> Document:
        """Create a document and return it."""
        ...

    async def update_document(
        self, collection_id: str, document_id: str, data: dict[str, Any]
    ) -> Document:
        """Apply a partial update and return the document."""
        ...

    async def delete_document(self, collection_id: str, document_id: str) -> None:
        """Delete a document."""
        ...


class SchemaStore(Protocol):
    """Collection and attribute management."""

    async def list_collections(self) -> list[dict[str, Any]]: ...

    async def get_collection(self, collection_id: str) -> dict[str, Any]: ...

    async def create_collection(self, collection_id: str, name: str) -> dict[str, Any]: ...

    async def update_collection(self, collection_id: str, name: str) -> dict[str, Any]: ...

    async def delete_collection(self, collection_id: str) -> None: ...

    async def list_attributes(self, collection_id: str) -> list[dict[str, Any]]: ...

    async def create_attribute(
        self, collection_id: str, kind: str, key: str, **options: Any
    ) -> dict[str, Any]:
        """Create an attribute of the given Appwrite kind (string, integer, ...)."""
        ...


class FileStore(Protocol):
    """Binary file storage in a single bucket."""

    async def create_file(
        self,
        file_id: str,
        filename: str,
        data: bytes,
        permissions: list[str] | None = None,
    ) -> dict[str, Any]: ...

    async def get_file(self, file_id: str) -> dict[str, Any]: ...

    async def list_files(self) -> list[dict[str, Any]]: ...

    async def delete_file(self, file_id: str) -> None: ...


class FunctionRunner(Protocol):
    """Triggers serverless function executions."""

    async def create_execution(
        self, function_id: str, body: str, asynchronous: bool = True
    ) -> dict[str, Any]: ...
