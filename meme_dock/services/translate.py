"""Text translation through the public Google Translate web endpoint."""

from typing import Any

import httpx
from loguru import logger

from ..config import Settings, settings
from ..exceptions import TranslationError
from ..retry import with_upstream_retry
from ..types import TranslationResult

SUPPORTED_LANGUAGES = [
    {"code": "en", "name": "English"},
    {"code": "vi", "name": "Vietnamese"},
    {"code": "fr", "name": "French"},
    {"code": "de", "name": "German"},
    {"code": "es", "name": "Spanish"},
    {"code": "it", "name": "Italian"},
    {"code": "ja", "name": "Japanese"},
    {"code": "ko", "name": "Korean"},
    {"code": "pt", "name": "Portuguese"},
    {"code": "ru", "name": "Russian"},
    {"code": "zh-CN", "name": "Chinese (Simplified)"},
    {"code": "zh-TW", "name": "Chinese (Traditional)"},
    {"code": "ar", "name": "Arabic"},
    {"code": "hi", "name": "Hindi"},
]

RATE_LIMIT_MESSAGE = "Translation API rate limit exceeded. Please try again later."


def parse_translation(payload: Any) -> tuple[str, str | None]:
    """Extract the translated text and detected source language.

    The endpoint answers with nested arrays: ``[[[translated, original, ...], ...], _, source]``.
    """
    if not isinstance(payload, list) or not payload or not isinstance(payload[0], list):
        raise TranslationError("Translation failed: unexpected response format")

    translated = "".join(
        segment[0] for segment in payload[0] if isinstance(segment, list) and segment and segment[0]
    )
    source = payload[2] if len(payload) > 2 and isinstance(payload[2], str) else None
    return translated, source


class TranslationService:
    """Translates short texts between languages."""

    def __init__(self, client: httpx.AsyncClient | None = None, config: Settings | None = None):
        self.config = config or settings
        self.client = client or httpx.AsyncClient(timeout=self.config.translate_timeout)

    async def aclose(self) -> None:
        await self.client.aclose()

    @with_upstream_retry("Translation", wrap_error=TranslationError)
    async def _fetch(self, text: str, source: str, target: str) -> httpx.Response:
        return await self.client.get(
            self.config.translate_url,
            params={"client": "gtx", "sl": source, "tl": target, "dt": "t", "q": text},
        )

    async def translate_text(
        self, text: str, to: str, from_: str | None = "auto"
    ) -> TranslationResult:
        """Translate text into the target language.

        Raises:
            TranslationError: 429 when the endpoint rate-limits us, 502 otherwise.
        """
        source = from_ or "auto"
        logger.debug(f"Translating {len(text)} characters from {source} to {to}")

        response = await self._fetch(text, source, to)

        if response.status_code == 429:
            logger.warning(f"Translation rate limit exceeded ({source} -> {to})")
            raise TranslationError(RATE_LIMIT_MESSAGE, status_code=429)

        try:
            response.raise_for_status()
            translated, detected = parse_translation(response.json())
        except (httpx.HTTPStatusError, ValueError) as e:
            logger.error(f"Translation failed: {e}")
            raise TranslationError(f"Translation failed: {e}") from e

        return {
            "originalText": text,
            "translatedText": translated,
            "fromLanguage": detected or source,
            "toLanguage": to,
        }
