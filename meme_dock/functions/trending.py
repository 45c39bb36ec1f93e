"""Trending score calculation for objects, tags and moods.

Scores are recomputed from scratch on every run:

- ``velocity`` is uses per hour over the last 24 hours
- ``spikeFactor`` is velocity relative to the lifetime average per hour
- ``trendingScore = velocity * spikeFactor``

Runs are safe to repeat; nothing is retried or rolled back.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

from loguru import logger

from ..config import Settings, settings
from ..queries import DocumentQuery, Filter, Operator
from ..services.documents import to_iso
from ..storage import MAX_PAGE_SIZE, DocumentStore, create_document_store
from ..types import Document, TrendingMetrics
from .runtime import EntityCollections, admin_client, entity_collections, forward_logs

RECENT_HOURS = 24


def calculate_trending_score(total_usages: int, recent_count: int, total_hours: int) -> TrendingMetrics:
    """Combine recent velocity with its deviation from the lifetime average."""
    velocity = recent_count / RECENT_HOURS
    average_per_hour = total_usages / total_hours

    if average_per_hour > 0:
        spike_factor = velocity / average_per_hour
    else:
        spike_factor = 1.0 if velocity > 0 else 0.0

    return {
        "totalUsages": total_usages,
        "recentCount": recent_count,
        "totalHours": total_hours,
        "velocity": velocity,
        "spikeFactor": spike_factor,
        "trendingScore": velocity * spike_factor,
    }


def hours_alive(created_at: str, now: datetime) -> int:
    """Whole hours since creation, at least 1."""
    created = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
    return max(1, int((now - created).total_seconds() // 3600))


class TrendingCalculator:
    """Recomputes ``trendingScore`` on every tracked entity."""

    def __init__(
        self,
        store: DocumentStore,
        config: Settings | None = None,
        now: datetime | None = None,
    ):
        self.store = store
        self.config = config or settings
        self.now = now or datetime.now(UTC)

    async def calculate_all(self) -> list[dict[str, Any]]:
        """Process every entity type concurrently."""
        return list(
            await asyncio.gather(
                *(
                    self.calculate_type(entity_type, collections)
                    for entity_type, collections in entity_collections(self.config).items()
                )
            )
        )

    async def calculate_type(
        self, entity_type: str, collections: EntityCollections
    ) -> dict[str, Any]:
        if not collections.is_configured:
            logger.warning(f"Missing environment variables for {entity_type} collections. Skipping.")
            return {"type": entity_type, "success": False, "error": "Missing environment variables"}

        try:
            documents = await self._all_documents(collections.collection_id)
        except Exception as e:
            logger.error(f"Error processing {entity_type} collection: {e}")
            return {"type": entity_type, "success": False, "error": str(e)}

        logger.info(f"Processing {len(documents)} {entity_type}(s) for trending calculation")

        cutoff = to_iso(self.now - timedelta(hours=RECENT_HOURS))
        results = await asyncio.gather(
            *(self.score_document(entity_type, collections, d, cutoff) for d in documents)
        )
        successful = sum(1 for r in results if r["success"])

        return {
            "type": entity_type,
            "success": True,
            "processed": {
                "successful": successful,
                "failed": len(results) - successful,
                "total": len(documents),
            },
            "documents": list(results),
        }

    async def score_document(
        self,
        entity_type: str,
        collections: EntityCollections,
        document: Document,
        cutoff: str,
    ) -> dict[str, Any]:
        document_id = document["$id"]
        try:
            recent_count = await self.store.count_documents(
                collections.usages_collection_id,
                DocumentQuery(
                    filters=[
                        Filter(collections.id_field, Operator.EQUAL, document_id),
                        Filter("$createdAt", Operator.GREATER_EQUAL, cutoff),
                    ]
                ),
            )
            metrics = calculate_trending_score(
                document.get("usageCount") or 0,
                recent_count,
                hours_alive(document["$createdAt"], self.now),
            )
            await self.store.update_document(
                collections.collection_id,
                document_id,
                {"trendingScore": metrics["trendingScore"]},
            )
        except Exception as e:
            logger.error(f"Error calculating trending for {entity_type} {document_id}: {e}")
            return {"id": document_id, "success": False, "error": str(e)}

        return {"id": document_id, "success": True, "metrics": metrics}

    async def _all_documents(self, collection_id: str) -> list[Document]:
        documents: list[Document] = []
        while True:
            page = await self.store.list_documents(
                collection_id,
                DocumentQuery(order_by="$id", limit=MAX_PAGE_SIZE, offset=len(documents)),
            )
            documents.extend(page["documents"])
            if not page["documents"] or len(documents) >= page["total"]:
                return documents


def main(context: Any) -> Any:
    """Appwrite entrypoint, run on a schedule."""
    with forward_logs(context):
        logger.info("Calculate trending scores function started")
        try:
            store = create_document_store(settings, client=admin_client(context))
            results = asyncio.run(TrendingCalculator(store).calculate_all())
        except Exception as e:
            logger.exception("Error in calculate trending scores function")
            return context.res.json(
                {
                    "success": False,
                    "message": "Error calculating trending scores",
                    "error": str(e),
                },
                500,
            )

        return context.res.json(
            {
                "success": True,
                "message": "Trending scores calculated successfully",
                "data": {"results": results, "timestamp": to_iso(datetime.now(UTC))},
            }
        )
