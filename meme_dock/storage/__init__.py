"""Storage module with factories for the Appwrite or in-memory backends."""

from appwrite.client import Client
from loguru import logger

from ..clients import create_admin_client
from ..config import Settings, settings
from ..exceptions import ConfigError
from .appwrite import (
    MAX_PAGE_SIZE,
    AppwriteDocumentStore,
    AppwriteFileStore,
    AppwriteFunctionRunner,
    AppwriteSchemaStore,
    default_permissions,
    to_appwrite_queries,
)
from .memory import MemoryDocumentStore, MemoryFileStore, MemoryFunctionRunner, MemorySchemaStore
from .protocols import DocumentStore, FileStore, FunctionRunner, SchemaStore


def create_document_store(
    config: Settings | None = None, client: Client | None = None
) -> DocumentStore:
    """Create a document store.

    Args:
        config: Settings to read from. Uses the global settings if not provided.
        client: Appwrite client to use instead of an API-key admin client.

    Returns:
        DocumentStore instance.
    """
    config = config or settings
    if config.use_in_memory_backends:
        logger.info("Creating in-memory document store")
        return MemoryDocumentStore()

    logger.info(f"Creating Appwrite document store for database {config.appwrite_database_id}")
    return AppwriteDocumentStore(
        client or create_admin_client(config),
        config.appwrite_database_id,
        config.appwrite_admin_team_id,
    )


def create_schema_store(config: Settings | None = None) -> SchemaStore:
    """Create a collection schema store."""
    config = config or settings
    if config.use_in_memory_backends:
        return MemorySchemaStore()
    return AppwriteSchemaStore(
        create_admin_client(config), config.appwrite_database_id, config.appwrite_admin_team_id
    )


def create_file_store(config: Settings | None = None) -> FileStore:
    """Create a file store for the meme bucket.

    Raises:
        ConfigError: If the bucket is not configured.
    """
    config = config or settings
    if config.use_in_memory_backends:
        return MemoryFileStore(config.appwrite_meme_bucket_id or "memory")
    if not config.appwrite_meme_bucket_id:
        raise ConfigError("Missing required Appwrite configuration: APPWRITE_MEME_BUCKET_ID")
    return AppwriteFileStore(create_admin_client(config), config.appwrite_meme_bucket_id)


def create_function_runner(
    config: Settings | None = None, client: Client | None = None
) -> FunctionRunner:
    """Create a function runner."""
    config = config or settings
    if config.use_in_memory_backends:
        return MemoryFunctionRunner()
    return AppwriteFunctionRunner(client or create_admin_client(config))


__all__ = [
    "MAX_PAGE_SIZE",
    "AppwriteDocumentStore",
    "AppwriteFileStore",
    "AppwriteFunctionRunner",
    "AppwriteSchemaStore",
    "DocumentStore",
    "FileStore",
    "FunctionRunner",
    "MemoryDocumentStore",
    "MemoryFileStore",
    "MemoryFunctionRunner",
    "MemorySchemaStore",
    "SchemaStore",
    "create_document_store",
    "create_file_store",
    "create_function_runner",
    "create_schema_store",
    "default_permissions",
    "to_appwrite_queries",
]
