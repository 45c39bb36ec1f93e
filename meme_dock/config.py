"""Configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from the environment."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    host: str = "0.0.0.0"  # nosec B104 - Required for container deployment
    port: int = 3001
    log_level: str = "INFO"
    log_file: str | None = None
    cors_origin: str = "*"

    # Appwrite
    appwrite_endpoint: str | None = None
    appwrite_project_id: str | None = None
    appwrite_api_key: str | None = None
    appwrite_database_id: str = "default"
    appwrite_meme_bucket_id: str | None = None
    appwrite_admin_team_id: str | None = None
    # Not APPWRITE_FUNCTION_ID: inside a function that names the running function itself
    usage_count_function_id: str | None = None

    # Collections
    meme_collection_id: str | None = None
    object_collection_id: str | None = None
    object_usages_collection_id: str | None = None
    tag_collection_id: str | None = None
    tag_usages_collection_id: str | None = None
    mood_collection_id: str | None = None
    mood_usages_collection_id: str | None = None

    # ImageKit
    imagekit_public_api_key: str | None = None
    imagekit_private_api_key: str | None = None
    imagekit_url_endpoint: str | None = None

    # Translation
    translate_url: str = "https://translate.googleapis.com/translate_a/single"
    translate_timeout: float = 10.0

    # Rate limiting
    redis_url: str | None = None
    rate_limit_enabled: bool = True
    default_rate_limit: str = "100 per 15 minutes"
    upload_rate_limit: str = "20 per 15 minutes"
    multiple_upload_rate_limit: str = "5 per hour"

    max_file_size: int = 2 * 1024 * 1024

    # Development toggles
    use_in_memory_backends: bool = False

    @property
    def is_appwrite_configured(self) -> bool:
        """Check that the Appwrite endpoint and project are set."""
        return bool(self.appwrite_endpoint and self.appwrite_project_id)

    @property
    def is_imagekit_configured(self) -> bool:
        """Check that all ImageKit credentials are set."""
        return bool(
            self.imagekit_public_api_key
            and self.imagekit_private_api_key
            and self.imagekit_url_endpoint
        )


settings = Settings()


def get_settings() -> Settings:
    """Get settings instance (for dependency injection)."""
    return settings
