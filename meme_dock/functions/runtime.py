"""Helpers shared by the Appwrite function entrypoints."""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger

from ..clients import create_admin_client
from ..config import Settings, settings
from ..logs import configure_logging

API_KEY_HEADER = "x-appwrite-key"


def read_body(context: Any) -> dict[str, Any]:
    """Return the request body as a dict.

    The runtime hands over JSON bodies either parsed or as raw text.
    """
    body = context.req.body
    if isinstance(body, bytes | bytearray):
        body = body.decode("utf-8")
    if isinstance(body, str):
        body = json.loads(body) if body.strip() else {}
    return body if isinstance(body, dict) else {}


def api_key(context: Any) -> str | None:
    """The per-execution API key Appwrite injects into the request headers."""
    headers = context.req.headers or {}
    return headers.get(API_KEY_HEADER)


def admin_client(context: Any, config: Settings | None = None):
    """Appwrite client authenticated with the execution's key."""
    return create_admin_client(config or settings, api_key=api_key(context))


@contextmanager
def forward_logs(context: Any) -> Iterator[None]:
    """Send loguru records to the execution log for the duration of the block."""
    configure_logging()

    def sink(message: Any) -> None:
        record = message.record
        text = f"{record['level'].name}: {record['message']}"
        if record["level"].no >= logger.level("ERROR").no and hasattr(context, "error"):
            context.error(text)
        else:
            context.log(text)

    sink_id = logger.add(sink, level=settings.log_level, format="{message}")
    try:
        yield
    finally:
        logger.remove(sink_id)


@dataclass(frozen=True)
class EntityCollections:
    """Where an entity type and its usage records live."""

    collection_id: str | None
    usages_collection_id: str | None
    id_field: str

    @property
    def is_configured(self) -> bool:
        return bool(self.collection_id and self.usages_collection_id)


def entity_collections(config: Settings | None = None) -> dict[str, EntityCollections]:
    """Collections of the tracked entity types, keyed by type."""
    config = config or settings
    return {
        "object": EntityCollections(
            config.object_collection_id, config.object_usages_collection_id, "objectId"
        ),
        "tag": EntityCollections(config.tag_collection_id, config.tag_usages_collection_id, "tagId"),
        "mood": EntityCollections(
            config.mood_collection_id, config.mood_usages_collection_id, "moodId"
        ),
    }
