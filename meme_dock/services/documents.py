"""Document CRUD, counting and batch creation."""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

from loguru import logger

from ..exceptions import AppError, ValidationError
from ..models import Duration
from ..queries import DocumentQuery, Filter, Operator, parse_query_strings
from ..storage import DocumentStore
from ..types import BatchCreateResult, Document, DocumentCountPeriod, DocumentList, FailedDocument

DEFAULT_PERIOD_LIMIT = 12
MAX_PERIOD_LIMIT = 100

SYSTEM_FIELDS = {
    "$id": "id",
    "$collectionId": "collectionId",
    "$createdAt": "createdAt",
    "$updatedAt": "updatedAt",
}


def format_document(document: Document) -> Document:
    """Rename the public system fields and drop every other ``$`` field."""
    formatted: Document = {}
    for key, value in document.items():
        if key in SYSTEM_FIELDS:
            formatted[SYSTEM_FIELDS[key]] = value
        elif not key.startswith("$"):
            formatted[key] = value
    return formatted


def to_iso(moment: datetime) -> str:
    """Format a UTC datetime the way Appwrite stores timestamps."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _shift_month(moment: datetime, months: int) -> datetime:
    index = moment.year * 12 + moment.month - 1 + months
    return moment.replace(year=index // 12, month=index % 12 + 1, day=1)


def build_periods(
    duration: Duration, limit: int, now: datetime | None = None
) -> list[tuple[str, datetime, datetime]]:
    """Build ``limit`` half-open UTC periods ending with the current one.

    Returns (label, start, end) tuples, oldest first.
    """
    now = (now or datetime.now(UTC)).astimezone(UTC)
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    periods = []

    for i in range(limit):
        match duration:
            case "day":
                start = today - timedelta(days=i)
                end = start + timedelta(days=1)
                label = start.strftime("%Y-%m-%d")
            case "week":
                end = today + timedelta(days=1) - timedelta(weeks=i)
                start = end - timedelta(weeks=1)
                last_day = end - timedelta(days=1)
                label = f"Week {last_day.isocalendar().week}, {last_day.strftime('%b %Y')}"
            case "month":
                start = _shift_month(today, -i)
                end = _shift_month(start, 1)
                label = start.strftime("%B %Y")
            case _:
                raise ValidationError("Duration must be one of: day, week, month", field="duration")
        periods.append((label, start, end))

    periods.reverse()
    return periods


def _chunks(items: list[Any], size: int) -> list[list[Any]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def _error_message(error: BaseException) -> str:
    return error.message if isinstance(error, AppError) else str(error)


class DocumentService:
    """Reads and writes documents of any collection."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_documents(
        self,
        collection_id: str,
        limit: int | None = None,
        offset: int | None = None,
        order_by: str | None = None,
        order_type: str | None = None,
        queries: list[str] | None = None,
    ) -> DocumentList:
        """List documents, filtered by ``"field,operator,value"`` query strings."""
        query = DocumentQuery(
            filters=parse_query_strings(queries),
            order_by=order_by,
            descending=(order_type or "").lower() == "desc",
            limit=limit,
            offset=offset,
        )
        result = await self.store.list_documents(collection_id, query)
        return {
            "total": result["total"],
            "documents": [format_document(d) for d in result["documents"]],
        }

    async def get_document(self, collection_id: str, document_id: str) -> Document:
        return format_document(await self.store.get_document(collection_id, document_id))

    async def create_document(self, collection_id: str, data: dict[str, Any]) -> Document:
        document = await self.store.create_document(collection_id, data)
        logger.info(f"Created document {document['$id']} in {collection_id}")
        return format_document(document)

    async def update_document(
        self, collection_id: str, document_id: str, data: dict[str, Any]
    ) -> Document:
        return format_document(await self.store.update_document(collection_id, document_id, data))

    async def delete_document(self, collection_id: str, document_id: str) -> None:
        await self.store.delete_document(collection_id, document_id)
        logger.info(f"Deleted document {document_id} from {collection_id}")

    async def get_document_count(self, collection_id: str) -> int:
        return await self.store.count_documents(collection_id)

    async def _count_period(
        self, collection_id: str, label: str, start: datetime, end: datetime
    ) -> DocumentCountPeriod:
        query = DocumentQuery(
            filters=[
                Filter("$createdAt", Operator.GREATER_EQUAL, to_iso(start)),
                Filter("$createdAt", Operator.LESSER, to_iso(end)),
            ]
        )
        try:
            count = await self.store.count_documents(collection_id, query)
        except Exception as e:
            logger.error(f"Error counting documents of {collection_id} for {label}: {e}")
            count = 0
        return {
            "period": label,
            "count": count,
            "periodStartDate": to_iso(start),
            "periodEndDate": to_iso(end),
        }

    async def get_document_increase_over_time(
        self,
        collection_id: str,
        duration: Duration,
        limit: int = DEFAULT_PERIOD_LIMIT,
        now: datetime | None = None,
    ) -> list[DocumentCountPeriod]:
        """Count documents created per day, week or month.

        Returns exactly ``limit`` periods, oldest first. A limit outside
        1..100 falls back to 12. A period whose count fails reports 0.
        """
        if not collection_id:
            raise ValidationError("Collection ID is required", field="collectionId")
        if limit <= 0 or limit > MAX_PERIOD_LIMIT:
            limit = DEFAULT_PERIOD_LIMIT

        periods = build_periods(duration, limit, now)
        return list(
            await asyncio.gather(
                *(self._count_period(collection_id, *period) for period in periods)
            )
        )

    async def _slug_exists(self, collection_id: str, slug: str) -> bool:
        query = DocumentQuery(filters=[Filter("slug", Operator.EQUAL, slug)])
        return await self.store.count_documents(collection_id, query) > 0

    async def create_documents(
        self,
        collection_id: str,
        documents: list[dict[str, Any]],
        skip_duplicate_slugs: bool = True,
        chunk_size: int = 10,
    ) -> BatchCreateResult:
        """Create many documents, chunk by chunk.

        Documents of one chunk are created concurrently and fail independently.
        With ``skip_duplicate_slugs`` a document whose slug already exists in
        the collection, or was seen earlier in the batch, is reported as
        failed without being created.
        """
        successful: list[Document] = []
        failed: list[FailedDocument] = []
        seen_slugs: set[str] = set()

        indexed = list(enumerate(documents))
        for chunk in _chunks(indexed, max(1, chunk_size)):
            pending: list[tuple[int, dict[str, Any]]] = []

            for index, data in chunk:
                slug = data.get("slug")
                if skip_duplicate_slugs and slug and not isinstance(slug, str):
                    failed.append({"index": index, "data": data, "error": "Slug must be a string"})
                    continue
                if skip_duplicate_slugs and slug:
                    try:
                        duplicate = slug in seen_slugs or await self._slug_exists(
                            collection_id, slug
                        )
                    except AppError as e:
                        failed.append({"index": index, "data": data, "error": e.message})
                        continue
                    seen_slugs.add(slug)
                    if duplicate:
                        failed.append(
                            {"index": index, "data": data, "error": f"Duplicate slug: {slug}"}
                        )
                        continue
                pending.append((index, data))

            results = await asyncio.gather(
                *(self.store.create_document(collection_id, data) for _, data in pending),
                return_exceptions=True,
            )
            for (index, data), result in zip(pending, results, strict=True):
                if isinstance(result, BaseException):
                    logger.warning(f"Batch document {index} failed in {collection_id}: {result}")
                    failed.append({"index": index, "data": data, "error": _error_message(result)})
                else:
                    successful.append(format_document(result))

        logger.info(
            f"Batch create in {collection_id}: {len(successful)} created, {len(failed)} failed"
        )
        return {"successful": successful, "failed": failed, "total": len(documents)}
