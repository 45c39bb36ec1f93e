"""End-to-end tests of the HTTP API over in-memory backends."""

from datetime import UTC, datetime, timedelta

import httpx
import pytest

from meme_dock import app
from meme_dock.services import TranslationService
from meme_dock.validation import MAX_FILE_SIZE


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "meme-dock-api"
        assert "timestamp" in data

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"


class TestDocuments:
    """Test document endpoints."""

    @pytest.mark.asyncio
    async def test_list_with_queries(self, client, document_store):
        document_store.seed("memes", {"title": "Cat", "usageCount": 5})
        document_store.seed("memes", {"title": "Dog", "usageCount": 1})

        response = await client.get(
            "/api/documents/memes",
            params={"queries": ["usageCount,greater,2"], "orderBy": "usageCount"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["documents"][0]["title"] == "Cat"

    @pytest.mark.asyncio
    async def test_get_missing_document(self, client):
        response = await client.get("/api/documents/memes/nope")

        assert response.status_code == 404
        assert response.json()["code"] == "NotFoundError"
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_count(self, client, document_store):
        document_store.seed("tags", {})
        document_store.seed("tags", {})

        response = await client.get("/api/documents/tags/count")

        assert response.json() == {"collectionId": "tags", "count": 2}

    @pytest.mark.asyncio
    async def test_increases_by_day(self, client, document_store):
        document_store.seed("memes", {}, created_at=datetime.now(UTC) - timedelta(days=1))

        response = await client.get(
            "/api/documents/memes/increases", params={"duration": "day", "limit": 3}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["collectionId"] == "memes"
        assert data["duration"] == "day"
        assert len(data["periods"]) == 3
        assert [p["count"] for p in data["periods"]] == [0, 1, 0]

    @pytest.mark.asyncio
    async def test_increases_invalid_duration(self, client):
        response = await client.get("/api/documents/memes/increases", params={"duration": "year"})

        assert response.status_code == 400
        assert response.json()["message"] == "Duration must be one of: day, week, month"

    @pytest.mark.asyncio
    async def test_increases_invalid_limit(self, client):
        response = await client.get("/api/documents/memes/increases", params={"limit": -1})

        assert response.status_code == 400
        assert response.json()["message"] == "Limit must be a positive number"

    @pytest.mark.asyncio
    async def test_crud_as_admin(self, client, as_admin):
        created = await client.post("/api/documents/tags", json={"name": "funny", "slug": "funny"})
        assert created.status_code == 201
        tag_id = created.json()["id"]

        updated = await client.put(f"/api/documents/tags/{tag_id}", json={"name": "Funny"})
        assert updated.json()["name"] == "Funny"

        deleted = await client.delete(f"/api/documents/tags/{tag_id}")
        assert deleted.status_code == 204

        missing = await client.get(f"/api/documents/tags/{tag_id}")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_batch_skips_duplicate_slugs(self, client, as_admin, document_store):
        document_store.seed("tags", {"slug": "funny"})

        response = await client.post(
            "/api/documents/tags/batch",
            json={"documents": [{"slug": "funny"}, {"slug": "wholesome"}]},
        )

        assert response.status_code == 201
        data = response.json()
        assert [d["slug"] for d in data["successful"]] == ["wholesome"]
        assert data["failed"][0]["error"] == "Duplicate slug: funny"

    @pytest.mark.asyncio
    async def test_batch_with_list_slug(self, client, as_admin):
        response = await client.post(
            "/api/documents/tags/batch",
            json={"documents": [{"slug": ["a", "b"]}, {"slug": "memes"}]},
        )

        assert response.status_code == 201
        data = response.json()
        assert [d["slug"] for d in data["successful"]] == ["memes"]
        assert data["failed"][0]["error"] == "Slug must be a string"


class TestAuth:
    """Test authentication and authorization on write endpoints."""

    @pytest.mark.asyncio
    async def test_write_requires_token(self, client):
        response = await client.post("/api/documents/tags", json={"name": "funny"})

        assert response.status_code == 401
        assert response.json()["code"] == "AuthenticationError"

    @pytest.mark.asyncio
    async def test_write_requires_admin(self, client):
        from unittest.mock import AsyncMock

        authenticator = app.state.authenticator
        authenticator.get_user_id = AsyncMock(return_value="user-1")
        authenticator.is_admin = AsyncMock(return_value=False)

        response = await client.post(
            "/api/collections",
            json={"name": "Tags", "fields": []},
            headers={"Authorization": "Bearer token"},
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Admin permission required."

    @pytest.mark.asyncio
    async def test_status_anonymous(self, client):
        response = await client.get("/api/auth/status")

        assert response.json() == {"authenticated": False, "message": "Not authenticated"}

    @pytest.mark.asyncio
    async def test_status_admin(self, client):
        from unittest.mock import AsyncMock

        authenticator = app.state.authenticator
        authenticator.get_user_id = AsyncMock(return_value="user-1")
        authenticator.is_admin = AsyncMock(return_value=True)

        response = await client.get("/api/auth/status", headers={"Authorization": "Bearer t"})

        assert response.json()["authenticated"] is True
        assert response.json()["isAdmin"] is True
        assert response.json()["userId"] == "user-1"

    @pytest.mark.asyncio
    async def test_admin_endpoint(self, client, as_admin):
        response = await client.get("/api/auth/admin")

        assert response.status_code == 200
        assert response.json()["userId"] == as_admin


class TestCollections:
    """Test collection endpoints."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, client, as_admin):
        payload = {
            "id": "moods",
            "name": "Moods",
            "fields": [
                {"name": "name", "type": "string", "required": True},
                {"name": "trendingScore", "type": "float"},
            ],
        }

        created = await client.post("/api/collections", json=payload)
        listed = await client.get("/api/collections")

        assert created.status_code == 201
        assert created.json()["id"] == "moods"
        fields = listed.json()[0]["fields"]
        assert [f["name"] for f in fields] == ["name", "trendingScore"]
        assert fields[1]["type"] == "number"

    @pytest.mark.asyncio
    async def test_enum_without_values(self, client, as_admin):
        response = await client.post(
            "/api/collections",
            json={"name": "Memes", "fields": [{"name": "platform", "type": "enum"}]},
        )

        assert response.status_code == 400
        assert "Enum values are required for enum fields" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_non_numeric_default(self, client, as_admin):
        response = await client.post(
            "/api/collections",
            json={"name": "Tags", "fields": [{"name": "score", "type": "number", "defaultValue": "abc"}]},
        )
        listed = await client.get("/api/collections")

        assert response.status_code == 400
        assert "Invalid default value for number field: abc" in response.json()["message"]
        assert listed.json() == []

    @pytest.mark.asyncio
    async def test_decimal_default_on_number_field(self, client, as_admin):
        response = await client.post(
            "/api/collections",
            json={"name": "Tags", "fields": [{"name": "score", "type": "number", "defaultValue": "1.5"}]},
        )

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_update_missing(self, client, as_admin):
        response = await client.put("/api/collections/nope", json={"name": "X", "fields": []})

        assert response.status_code == 404


class TestFiles:
    """Test file endpoints."""

    @pytest.mark.asyncio
    async def test_upload_too_large(self, client, as_admin):
        """Test a file over MAX_FILE_SIZE is rejected with 400."""
        files = {"file": ("huge.png", b"x" * (MAX_FILE_SIZE + 1), "image/png")}

        response = await client.post("/api/files/upload", files=files)

        assert response.status_code == 400
        assert response.json()["code"] == "FileError"
        assert response.json()["message"].startswith("File too large")

    @pytest.mark.asyncio
    async def test_upload_and_fetch(self, client, as_admin, png_bytes):
        uploaded = await client.post(
            "/api/files/upload", files={"file": ("cat.png", png_bytes, "image/png")}
        )
        assert uploaded.status_code == 201
        file_id = uploaded.json()["file"]["$id"]

        metadata = await client.get(f"/api/files/{file_id}/metadata")
        listing = await client.get("/api/files")
        download = await client.get(f"/api/files/{file_id}/download")

        assert metadata.json()["file"]["name"] == "cat.png"
        assert listing.json()["total"] == 1
        assert download.json()["downloadUrl"] == (
            f"https://appwrite.test/v1/storage/buckets/memes-bucket/files/{file_id}"
            "/download?project=test-project"
        )

    @pytest.mark.asyncio
    async def test_upload_without_file(self, client, as_admin):
        response = await client.post("/api/files/upload")

        assert response.status_code == 400
        assert response.json()["message"] == "No file provided"

    @pytest.mark.asyncio
    async def test_upload_multiple(self, client, as_admin, png_bytes):
        files = [
            ("files", ("a.png", png_bytes, "image/png")),
            ("files", ("b.png", png_bytes, "image/png")),
        ]

        response = await client.post("/api/files/upload/multiple", files=files)

        assert response.status_code == 201
        assert len(response.json()["files"]) == 2

    @pytest.mark.asyncio
    async def test_invalid_preview_size(self, client):
        response = await client.get("/api/files/abc/preview", params={"width": 0})

        assert response.status_code == 400


class TestImages:
    """Test image endpoints on the Appwrite platform."""

    @pytest.mark.asyncio
    async def test_upload_and_get(self, client, as_admin, png_bytes):
        uploaded = await client.post(
            "/api/images",
            files={"file": ("cat.png", png_bytes, "image/png")},
            data={"platform": "appwrite", "fileName": "grumpy.png"},
        )

        assert uploaded.status_code == 201
        image = uploaded.json()["data"]
        assert image["name"] == "grumpy.png"
        assert image["url"] == f"/api/images/view/{image['id']}"

        fetched = await client.get(f"/api/images/{image['id']}", params={"platform": "appwrite"})
        assert fetched.json()["data"]["id"] == image["id"]

        listed = await client.get("/api/images")
        assert listed.json()["data"]["total"] == 1

    @pytest.mark.asyncio
    async def test_view_redirects(self, client):
        response = await client.get("/api/images/view/abc")

        assert response.status_code == 302
        assert response.headers["location"] == (
            "https://appwrite.test/v1/storage/buckets/memes-bucket/files/abc/view?project=test-project"
        )

    @pytest.mark.asyncio
    async def test_preview_redirect_with_size(self, client):
        response = await client.get("/api/images/preview/abc", params={"width": 120})

        assert response.status_code == 302
        assert "width=120" in response.headers["location"]

    @pytest.mark.asyncio
    async def test_imagekit_not_configured(self, client):
        response = await client.get("/api/images/view/abc", params={"platform": "imagekit"})

        assert response.status_code == 500
        assert response.json()["code"] == "ConfigError"

    @pytest.mark.asyncio
    async def test_delete(self, client, as_admin, png_bytes):
        uploaded = await client.post(
            "/api/images", files={"file": ("cat.png", png_bytes, "image/png")}
        )
        image_id = uploaded.json()["data"]["id"]

        response = await client.delete(f"/api/images/{image_id}")

        assert response.json() == {"success": True, "message": "Image deleted successfully"}


class TestTranslate:
    """Test translation endpoints."""

    @pytest.fixture
    def upstream(self, client):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params["q"] == "slow down":
                return httpx.Response(429)
            return httpx.Response(200, json=[[["Bonjour", "Hello"]], None, "en"])

        app.state.translation_service = TranslationService(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )

    @pytest.mark.asyncio
    async def test_translate(self, client, upstream):
        response = await client.post("/api/translate", json={"text": "Hello", "to": "fr"})

        assert response.status_code == 200
        assert response.json()["translatedText"] == "Bonjour"
        assert response.json()["fromLanguage"] == "en"

    @pytest.mark.asyncio
    async def test_simple_translate_alias(self, client, upstream):
        response = await client.post(
            "/api/simple-translate", json={"text": "Hello", "to": "fr", "from": "en"}
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_rate_limited_upstream(self, client, upstream):
        response = await client.post("/api/translate", json={"text": "slow down", "to": "fr"})

        assert response.status_code == 429
        assert response.json()["code"] == "TranslationError"

    @pytest.mark.asyncio
    async def test_empty_text(self, client):
        response = await client.post("/api/translate", json={"text": "", "to": "fr"})

        assert response.status_code == 400
        assert response.json()["message"] == "Text is required and must be a string"

    @pytest.mark.asyncio
    async def test_text_too_long(self, client):
        response = await client.post("/api/translate", json={"text": "a" * 1001, "to": "fr"})

        assert response.status_code == 400
        assert "maximum 1000 characters" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_languages(self, client):
        response = await client.get("/api/simple-translate/languages")

        assert response.status_code == 200
        assert {"code": "en", "name": "English"} in response.json()


class TestMemes:
    """Test meme endpoints."""

    @pytest.mark.asyncio
    async def test_list_and_count_usage(self, client, as_admin, document_store):
        document_store.seed("memes", {"title": "Drake", "usageCount": 4}, document_id="m1")

        listed = await client.get("/api/memes")
        used = await client.post("/api/memes/m1/usage")

        assert listed.json()["total"] == 1
        assert used.status_code == 200
        assert used.json()["usageCount"] == 5

    @pytest.mark.asyncio
    async def test_count_usage_requires_token(self, client, document_store):
        document_store.seed("memes", {"title": "Drake", "usageCount": 4}, document_id="m1")

        response = await client.post("/api/memes/m1/usage")

        assert response.status_code == 401
