"""Shared test fixtures."""

import os
from collections.abc import AsyncGenerator
from types import SimpleNamespace
from typing import Any

# Set test environment before the package reads its settings
os.environ["USE_IN_MEMORY_BACKENDS"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "ERROR"  # Reduce log noise
os.environ["APPWRITE_ENDPOINT"] = "https://appwrite.test/v1"
os.environ["APPWRITE_PROJECT_ID"] = "test-project"
os.environ["APPWRITE_API_KEY"] = "test-key"
os.environ["APPWRITE_MEME_BUCKET_ID"] = "memes-bucket"
os.environ["APPWRITE_ADMIN_TEAM_ID"] = "admins"
os.environ["USAGE_COUNT_FUNCTION_ID"] = "increase-usage-count"
os.environ["MEME_COLLECTION_ID"] = "memes"
os.environ["OBJECT_COLLECTION_ID"] = "objects"
os.environ["OBJECT_USAGES_COLLECTION_ID"] = "object_usages"
os.environ["TAG_COLLECTION_ID"] = "tags"
os.environ["TAG_USAGES_COLLECTION_ID"] = "tag_usages"
os.environ["MOOD_COLLECTION_ID"] = "moods"
os.environ["MOOD_USAGES_COLLECTION_ID"] = "mood_usages"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from meme_dock import app  # noqa: E402
from meme_dock.app import build_services  # noqa: E402
from meme_dock.config import settings  # noqa: E402
from meme_dock.middleware import require_admin  # noqa: E402
from meme_dock.storage import MemoryDocumentStore  # noqa: E402

PNG_HEADER = b"\x89PNG\r\n\x1a\n"


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Test client over fresh in-memory backends stored on app.state."""
    build_services(app, settings)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def as_admin() -> str:
    """Let write endpoints through as an admin user."""
    app.dependency_overrides[require_admin] = lambda: "admin-user"
    return "admin-user"


@pytest.fixture
def document_store(client: AsyncClient) -> MemoryDocumentStore:
    """The in-memory store behind the client's document service."""
    return app.state.document_service.store


@pytest.fixture
def png_bytes() -> bytes:
    """A small payload that passes image validation."""
    return PNG_HEADER + b"\x00" * 256


class FunctionResponse:
    """Stand-in for the Appwrite function response builder."""

    def json(self, data: Any, status_code: int = 200) -> dict[str, Any]:
        return {"status": status_code, "body": data}


class FunctionContext:
    """Stand-in for the context an Appwrite function receives."""

    def __init__(self, body: Any = None, headers: dict[str, str] | None = None):
        self.req = SimpleNamespace(
            body=body if body is not None else "",
            headers=headers if headers is not None else {"x-appwrite-key": "execution-key"},
        )
        self.res = FunctionResponse()
        self.logs: list[str] = []
        self.errors: list[str] = []

    def log(self, message: str) -> None:
        self.logs.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture
def function_context():
    """Factory for Appwrite function contexts."""
    return FunctionContext
