"""Appwrite and ImageKit SDK client construction."""

from functools import lru_cache
from urllib.parse import urlencode

from appwrite.client import Client
from imagekitio import ImageKit

from .config import Settings, settings
from .exceptions import ConfigError


def create_base_client(config: Settings | None = None) -> Client:
    """Create an unauthenticated Appwrite client for the configured project."""
    config = config or settings
    if not config.is_appwrite_configured:
        raise ConfigError(
            "Missing required Appwrite configuration: APPWRITE_ENDPOINT, APPWRITE_PROJECT_ID"
        )
    return Client().set_endpoint(config.appwrite_endpoint).set_project(config.appwrite_project_id)


def create_admin_client(config: Settings | None = None, api_key: str | None = None) -> Client:
    """Create a server-side Appwrite client authenticated with an API key.

    Args:
        config: Settings to read endpoint, project and key from.
        api_key: Overrides the configured key (functions receive one per execution).

    Raises:
        ConfigError: If endpoint, project or key is missing.
    """
    config = config or settings
    key = api_key or config.appwrite_api_key
    if not key:
        raise ConfigError("Missing required Appwrite configuration: APPWRITE_API_KEY")
    return create_base_client(config).set_key(key)


def create_jwt_client(jwt: str, config: Settings | None = None) -> Client:
    """Create a client acting as the end user identified by an Appwrite JWT."""
    return create_base_client(config).set_jwt(jwt)


@lru_cache(maxsize=1)
def _imagekit(public_key: str, private_key: str, url_endpoint: str) -> ImageKit:
    return ImageKit(public_key=public_key, private_key=private_key, url_endpoint=url_endpoint)


def get_imagekit(config: Settings | None = None) -> ImageKit:
    """Get the shared ImageKit SDK instance.

    Raises:
        ConfigError: If any ImageKit credential is missing.
    """
    config = config or settings
    if not config.is_imagekit_configured:
        raise ConfigError(
            "Missing required ImageKit environment variables: IMAGEKIT_PUBLIC_API_KEY, "
            "IMAGEKIT_PRIVATE_API_KEY, IMAGEKIT_URL_ENDPOINT"
        )
    return _imagekit(
        config.imagekit_public_api_key,
        config.imagekit_private_api_key,
        config.imagekit_url_endpoint,
    )


def appwrite_file_url(
    file_id: str,
    action: str,
    config: Settings | None = None,
    **params: str | int,
) -> str:
    """Build a public Appwrite storage URL for a file in the meme bucket.

    Format: {endpoint}/storage/buckets/{bucketId}/files/{fileId}/{action}?project={projectId}
    """
    config = config or settings
    if not (config.appwrite_meme_bucket_id and config.is_appwrite_configured):
        raise ConfigError("Missing required Appwrite configuration")

    endpoint = config.appwrite_endpoint.rstrip("/")
    query = {"project": config.appwrite_project_id, **params}
    return (
        f"{endpoint}/storage/buckets/{config.appwrite_meme_bucket_id}"
        f"/files/{file_id}/{action}?{urlencode(query)}"
    )
