"""Webhook for meme document creation events.

Fans the meme's object, tag and mood ids out to the usage-count function,
one asynchronous execution per relation type.
"""

import asyncio
import json
from typing import Any

from loguru import logger

from ..config import settings
from ..exceptions import ConfigError
from ..storage import FunctionRunner, create_function_runner
from .runtime import admin_client, forward_logs, read_body

RELATION_FIELDS = {"object": "objectIds", "tag": "tagIds", "mood": "moodIds"}


def usage_function_id() -> str:
    """ID of the usage-count function to execute."""
    if not settings.usage_count_function_id:
        raise ConfigError("USAGE_COUNT_FUNCTION_ID not configured")
    return settings.usage_count_function_id


async def dispatch_usage_updates(
    runner: FunctionRunner, function_id: str, meme: dict[str, Any]
) -> list[dict[str, Any]]:
    """Start one usage-count execution per non-empty relation list."""
    results = []
    for collection_type, field in RELATION_FIELDS.items():
        ids = meme.get(field) or []
        if not ids:
            continue

        logger.info(f"Processing {len(ids)} {field}")
        execution = await runner.create_execution(
            function_id,
            json.dumps(
                {
                    "collectionType": collection_type,
                    "ids": ids,
                    "memeId": meme["$id"],
                    "eventType": "upload",
                }
            ),
            asynchronous=True,
        )
        results.append({"type": collection_type, "execution": execution["$id"], "count": len(ids)})
    return results


def main(context: Any) -> Any:
    """Appwrite entrypoint, triggered by ``databases.*.collections.*.documents.*.create``."""
    with forward_logs(context):
        logger.info("Meme creation handler started")
        try:
            meme = read_body(context)
        except ValueError as e:
            logger.warning(f"Unreadable event body: {e}")
            meme = {}

        if not meme.get("$id"):
            return context.res.json(
                {
                    "success": False,
                    "message": "Invalid event data or not a meme document creation event",
                },
                400,
            )

        if not any(meme.get(field) for field in RELATION_FIELDS.values()):
            logger.info("No relation IDs found in the meme document")
            return context.res.json(
                {"success": False, "message": "No relation IDs found in the meme document"}
            )

        try:
            function_id = usage_function_id()
            runner = create_function_runner(settings, client=admin_client(context))
            results = asyncio.run(dispatch_usage_updates(runner, function_id, meme))
        except Exception as e:
            logger.exception("Error in meme creation handler")
            return context.res.json(
                {
                    "success": False,
                    "message": "Error processing meme creation event",
                    "error": str(e),
                },
                500,
            )

        return context.res.json(
            {
                "success": True,
                "message": "Usage counts update initiated successfully",
                "data": {"memeId": meme["$id"], "results": results},
            }
        )
