"""Collection schema endpoints."""

from fastapi import APIRouter, Response, status

from ..dependencies import AdminUser, Collections
from ..models import CollectionRequest

router = APIRouter(prefix="/api/collections", tags=["collections"])


@router.get("")
async def list_collections(service: Collections) -> list[dict]:
    return await service.get_collections()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_collection(req: CollectionRequest, service: Collections, _: AdminUser) -> dict:
    return await service.create_collection(req)


@router.post("/batch", status_code=status.HTTP_201_CREATED)
async def create_collections(
    reqs: list[CollectionRequest], service: Collections, _: AdminUser
) -> list[dict]:
    """Create several collections in order; stops at the first failure."""
    return await service.create_collections(reqs)


@router.put("/{collection_id}")
async def update_collection(
    collection_id: str, req: CollectionRequest, service: Collections, _: AdminUser
) -> dict:
    return await service.update_collection(collection_id, req)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(collection_id: str, service: Collections, _: AdminUser) -> Response:
    await service.delete_collection(collection_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
