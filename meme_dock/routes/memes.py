"""Meme listing and usage endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from ..dependencies import AdminUser, Memes

router = APIRouter(prefix="/api/memes", tags=["memes"])


@router.get("")
async def list_memes(
    service: Memes,
    limit: int | None = Query(None, ge=0),
    offset: int | None = Query(None, ge=0),
    order_by: str | None = Query(None, alias="orderBy"),
    order_type: str | None = Query(None, alias="orderType"),
    queries: Annotated[list[str] | None, Query()] = None,
) -> dict:
    return await service.get_memes(
        limit=limit, offset=offset, order_by=order_by, order_type=order_type, queries=queries
    )


@router.post("/{meme_id}/usage")
async def increment_meme_usage(meme_id: str, service: Memes, _: AdminUser) -> dict:
    """Record one more use of a meme."""
    return await service.increment_usage_count(meme_id)
