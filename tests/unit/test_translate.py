"""Tests for TranslationService."""

import httpx
import pytest

from meme_dock.config import Settings
from meme_dock.exceptions import TranslationError
from meme_dock.services import SUPPORTED_LANGUAGES, TranslationService
from meme_dock.services.translate import RATE_LIMIT_MESSAGE, parse_translation

CONFIG = Settings(_env_file=None, translate_url="https://translate.test/single")


def service_for(handler) -> TranslationService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TranslationService(client=client, config=CONFIG)


class TestParseTranslation:
    """Test parsing of the nested array payload."""

    def test_joins_segments(self):
        payload = [[["Bonjour. ", "Hello. ", None], ["Ça va ?", "How are you?", None]], None, "en"]

        assert parse_translation(payload) == ("Bonjour. Ça va ?", "en")

    def test_missing_source(self):
        assert parse_translation([[["Hola", "Hello"]]]) == ("Hola", None)

    def test_unexpected_format(self):
        with pytest.raises(TranslationError, match="unexpected response format"):
            parse_translation({"error": "nope"})


class TestTranslationService:
    """Test translation requests against a mocked endpoint."""

    @pytest.mark.asyncio
    async def test_translate(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json=[[["Bonjour", "Hello", None, None]], None, "en"])

        result = await service_for(handler).translate_text("Hello", "fr")

        assert result == {
            "originalText": "Hello",
            "translatedText": "Bonjour",
            "fromLanguage": "en",
            "toLanguage": "fr",
        }
        assert seen == {"client": "gtx", "sl": "auto", "tl": "fr", "dt": "t", "q": "Hello"}

    @pytest.mark.asyncio
    async def test_explicit_source_language(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["sl"] == "vi"
            return httpx.Response(200, json=[[["Hello", "Xin chào"]]])

        result = await service_for(handler).translate_text("Xin chào", "en", "vi")

        assert result["fromLanguage"] == "vi"

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        """Test an upstream 429 surfaces as a 429 TranslationError."""
        service = service_for(lambda request: httpx.Response(429))

        with pytest.raises(TranslationError) as exc_info:
            await service.translate_text("Hello", "fr")

        assert exc_info.value.status_code == 429
        assert exc_info.value.message == RATE_LIMIT_MESSAGE

    @pytest.mark.asyncio
    async def test_upstream_error(self):
        service = service_for(lambda request: httpx.Response(503))

        with pytest.raises(TranslationError, match="Translation failed") as exc_info:
            await service.translate_text("Hello", "fr")

        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        service = service_for(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(TranslationError, match="Translation failed"):
            await service.translate_text("Hello", "fr")

    @pytest.mark.asyncio
    async def test_aclose(self):
        service = service_for(lambda request: httpx.Response(200, json=[]))

        await service.aclose()

        assert service.client.is_closed


def test_supported_languages():
    codes = {language["code"] for language in SUPPORTED_LANGUAGES}

    assert len(SUPPORTED_LANGUAGES) == 14
    assert {"en", "vi", "zh-CN", "zh-TW"} <= codes
