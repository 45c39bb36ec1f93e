"""Text translation endpoints."""

from fastapi import APIRouter

from ..dependencies import Translator
from ..models import TranslateRequest
from ..services import SUPPORTED_LANGUAGES
from ..types import TranslationResult

router = APIRouter(tags=["translate"])


@router.post("")
async def translate(req: TranslateRequest, service: Translator) -> TranslationResult:
    return await service.translate_text(req.text, req.to, req.from_)


@router.get("/languages")
async def supported_languages() -> list[dict[str, str]]:
    return SUPPORTED_LANGUAGES
