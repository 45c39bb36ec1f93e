"""Meme listing and usage counting."""

import asyncio
from collections import defaultdict
from typing import Any

from loguru import logger

from ..exceptions import ConfigError
from ..types import Document, DocumentList
from .documents import DocumentService, format_document


class MemeService:
    """Operations on the meme collection."""

    def __init__(self, documents: DocumentService, collection_id: str | None):
        self.documents = documents
        self._collection_id = collection_id
        # Appwrite has no atomic increment; serialize read-then-write per meme
        self._usage_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def collection_id(self) -> str:
        if not self._collection_id:
            raise ConfigError("MEME_COLLECTION_ID not configured")
        return self._collection_id

    async def get_memes(self, **params: Any) -> DocumentList:
        """List memes; accepts the same parameters as DocumentService.get_documents."""
        return await self.documents.get_documents(self.collection_id, **params)

    async def increment_usage_count(self, meme_id: str) -> Document:
        """Add one to a meme's usage count."""
        store = self.documents.store
        async with self._usage_locks[meme_id]:
            current = await store.get_document(self.collection_id, meme_id)
            count = (current.get("usageCount") or 0) + 1
            updated = await store.update_document(
                self.collection_id, meme_id, {"usageCount": count}
            )
        logger.info(f"Meme {meme_id} usage count is now {count}")
        return format_document(updated)
