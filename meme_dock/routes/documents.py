"""Document endpoints for any collection."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Query, Response, status

from ..dependencies import AdminUser, Documents
from ..exceptions import ValidationError
from ..models import BatchDocumentsRequest, DocumentIncreaseResponse

router = APIRouter(prefix="/api/documents", tags=["documents"])

DURATIONS = ("day", "week", "month")


@router.get("/{collection_id}/increases", response_model=DocumentIncreaseResponse)
async def get_document_increases(
    collection_id: str,
    service: Documents,
    duration: str = "month",
    limit: int | None = None,
) -> dict:
    """Documents created per day, week or month, oldest period first."""
    if duration not in DURATIONS:
        raise ValidationError("Duration must be one of: day, week, month", field="duration")
    if limit is not None and limit <= 0:
        raise ValidationError("Limit must be a positive number", field="limit")

    periods = await service.get_document_increase_over_time(
        collection_id, duration, limit if limit is not None else 12  # type: ignore[arg-type]
    )
    return {"collectionId": collection_id, "duration": duration, "periods": periods}


@router.get("/{collection_id}/count")
async def get_document_count(collection_id: str, service: Documents) -> dict:
    count = await service.get_document_count(collection_id)
    return {"collectionId": collection_id, "count": count}


@router.get("/{collection_id}")
async def list_documents(
    collection_id: str,
    service: Documents,
    limit: int | None = Query(None, ge=0),
    offset: int | None = Query(None, ge=0),
    order_by: str | None = Query(None, alias="orderBy"),
    order_type: str | None = Query(None, alias="orderType"),
    queries: Annotated[list[str] | None, Query()] = None,
) -> dict:
    """List documents. Each ``queries`` value has the form ``field,operator,value``."""
    return await service.get_documents(
        collection_id,
        limit=limit,
        offset=offset,
        order_by=order_by,
        order_type=order_type,
        queries=queries,
    )


@router.get("/{collection_id}/{document_id}")
async def get_document(collection_id: str, document_id: str, service: Documents) -> dict:
    return await service.get_document(collection_id, document_id)


@router.post("/{collection_id}/batch", status_code=status.HTTP_201_CREATED)
async def create_documents(
    collection_id: str, req: BatchDocumentsRequest, service: Documents, _: AdminUser
) -> dict:
    return await service.create_documents(
        collection_id,
        req.documents,
        skip_duplicate_slugs=req.skip_duplicate_slugs,
        chunk_size=req.chunk_size,
    )


@router.post("/{collection_id}", status_code=status.HTTP_201_CREATED)
async def create_document(
    collection_id: str,
    service: Documents,
    _: AdminUser,
    data: dict[str, Any] = Body(...),
) -> dict:
    if not data:
        raise ValidationError("Collection ID and document data are required")
    return await service.create_document(collection_id, data)


@router.put("/{collection_id}/{document_id}")
async def update_document(
    collection_id: str,
    document_id: str,
    service: Documents,
    _: AdminUser,
    data: dict[str, Any] = Body(...),
) -> dict:
    if not data:
        raise ValidationError("Collection ID, Document ID and document data are required")
    return await service.update_document(collection_id, document_id, data)


@router.delete("/{collection_id}/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    collection_id: str, document_id: str, service: Documents, _: AdminUser
) -> Response:
    await service.delete_document(collection_id, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
