"""Tests for MemeService."""

import asyncio

import pytest

from meme_dock.exceptions import ConfigError, NotFoundError
from meme_dock.services import DocumentService, MemeService
from meme_dock.storage import MemoryDocumentStore


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


class TestMemeService:
    """Test meme listing and usage counting."""

    @pytest.mark.asyncio
    async def test_get_memes(self, store):
        store.seed("memes", {"title": "Distracted boyfriend"})
        store.seed("memes", {"title": "Drake"})

        result = await MemeService(DocumentService(store), "memes").get_memes(
            queries=["title,search,drake"]
        )

        assert result["total"] == 1
        assert result["documents"][0]["title"] == "Drake"

    @pytest.mark.asyncio
    async def test_increment_usage_count(self, store):
        store.seed("memes", {"title": "Drake"}, document_id="m1")
        service = MemeService(DocumentService(store), "memes")

        await service.increment_usage_count("m1")
        result = await service.increment_usage_count("m1")

        assert result["id"] == "m1"
        assert result["usageCount"] == 2

    @pytest.mark.asyncio
    async def test_concurrent_increments_are_not_lost(self, store, monkeypatch):
        store.seed("memes", {"title": "Drake"}, document_id="m1")
        service = MemeService(DocumentService(store), "memes")
        get_document = store.get_document

        async def slow_get(*args, **kwargs):
            document = await get_document(*args, **kwargs)
            await asyncio.sleep(0)
            return document

        monkeypatch.setattr(store, "get_document", slow_get)

        await asyncio.gather(*(service.increment_usage_count("m1") for _ in range(5)))

        assert (await get_document("memes", "m1"))["usageCount"] == 5

    @pytest.mark.asyncio
    async def test_missing_meme(self, store):
        with pytest.raises(NotFoundError):
            await MemeService(DocumentService(store), "memes").increment_usage_count("nope")

    @pytest.mark.asyncio
    async def test_collection_not_configured(self, store):
        with pytest.raises(ConfigError, match="MEME_COLLECTION_ID not configured"):
            await MemeService(DocumentService(store), None).get_memes()
