"""Usage-count increment for objects, tags and moods used by a meme."""

import asyncio
from typing import Any

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings, settings
from ..models import UsageEvent
from ..storage import DocumentStore, create_document_store
from .runtime import admin_client, entity_collections, forward_logs, read_body


class UsageRecorder:
    """Increments ``usageCount`` and writes one usage record per entity."""

    def __init__(self, store: DocumentStore, config: Settings | None = None):
        self.store = store
        self.config = config or settings

    async def record(self, event: UsageEvent) -> list[dict[str, Any]]:
        collections = entity_collections(self.config)[event.collection_type]
        if not collections.is_configured:
            return [
                {"id": entity_id, "success": False, "error": "Missing environment variables"}
                for entity_id in event.ids
            ]

        async def increment(entity_id: str) -> dict[str, Any]:
            try:
                entity = await self.store.get_document(collections.collection_id, entity_id)
                usage_count = (entity.get("usageCount") or 0) + 1
                await self.store.update_document(
                    collections.collection_id, entity_id, {"usageCount": usage_count}
                )
                await self.store.create_document(
                    collections.usages_collection_id,
                    {
                        collections.id_field: entity_id,
                        "memeId": event.meme_id,
                        "eventType": event.event_type,
                        "userId": event.user_id,
                    },
                )
            except Exception as e:
                logger.error(f"Error increasing usage of {event.collection_type} {entity_id}: {e}")
                return {"id": entity_id, "success": False, "error": str(e)}

            return {"id": entity_id, "success": True, "usageCount": usage_count}

        return list(await asyncio.gather(*(increment(i) for i in event.ids)))


def main(context: Any) -> Any:
    """Appwrite entrypoint, executed by the meme-creation webhook."""
    with forward_logs(context):
        try:
            event = UsageEvent.model_validate(read_body(context))
        except (PydanticValidationError, ValueError) as e:
            logger.warning(f"Invalid usage event: {e}")
            return context.res.json(
                {"success": False, "message": "Invalid usage event", "error": str(e)}, 400
            )

        logger.info(f"Increasing usage count of {len(event.ids)} {event.collection_type}(s)")
        try:
            store = create_document_store(settings, client=admin_client(context))
            results = asyncio.run(UsageRecorder(store).record(event))
        except Exception as e:
            logger.exception("Error in increase usage count function")
            return context.res.json(
                {"success": False, "message": "Error increasing usage counts", "error": str(e)},
                500,
            )

        return context.res.json(
            {
                "success": all(r["success"] for r in results),
                "message": "Usage counts updated",
                "data": {
                    "collectionType": event.collection_type,
                    "memeId": event.meme_id,
                    "results": results,
                },
            }
        )
