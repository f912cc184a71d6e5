"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock modes enable local development without Supabase or object storage.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "CoachDesk API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys. Using a list enables key rotation without downtime."
    )

    # Supabase (rows)
    supabase_url: str = Field(
        default="",
        description="Supabase project URL, e.g. https://abcd.supabase.co"
    )
    supabase_key: str = Field(
        default="",
        description="Supabase service role or anon key"
    )
    database_mock_mode: bool = Field(
        default=False,
        description="Use in-memory tables instead of Supabase. Enables local dev without a project."
    )

    # Object storage (media)
    storage_access_key_id: str = Field(
        default="",
        description="S3 access key ID for Supabase Storage"
    )
    storage_secret_access_key: str = Field(
        default="",
        description="S3 secret access key for Supabase Storage"
    )
    storage_endpoint_url: Optional[str] = Field(
        default=None,
        description="S3 endpoint URL. Derived from supabase_url if not provided."
    )
    storage_region: str = Field(
        default="us-east-1",
        description="Region of the Supabase project"
    )
    storage_public_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for public objects. Derived from supabase_url if not provided."
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory object storage. Enables local dev without buckets."
    )
    exercise_videos_bucket: str = "exercise-videos"
    recipe_images_bucket: str = "recipe-images"
    progress_photos_bucket: str = "progress-photos"

    # Application Behavior
    max_upload_size_mb: int = Field(
        default=100,
        description="Maximum size of a single media upload in MB."
    )
    default_weight_unit: str = Field(
        default="kg",
        description="Unit used when a progress entry doesn't name one (kg or lb)"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def storage_endpoint(self) -> str:
        """
        S3-compatible endpoint for Supabase Storage.

        Supabase exposes it at {project_url}/storage/v1/s3.
        """
        if self.storage_endpoint_url:
            return self.storage_endpoint_url
        return f"{self.supabase_url.rstrip('/')}/storage/v1/s3"

    @property
    def storage_public_base(self) -> str:
        """Prefix for public object URLs: {base}/{bucket}/{path}."""
        if self.storage_public_base_url:
            return self.storage_public_base_url.rstrip("/")
        return f"{self.supabase_url.rstrip('/')}/storage/v1/object/public"

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        if not self.database_mock_mode:
            if not self.supabase_url:
                missing.append("SUPABASE_URL")
            if not self.supabase_key:
                missing.append("SUPABASE_KEY")

        if not self.storage_mock_mode:
            if not self.storage_access_key_id:
                missing.append("STORAGE_ACCESS_KEY_ID")
            if not self.storage_secret_access_key:
                missing.append("STORAGE_SECRET_ACCESS_KEY")
            if not self.storage_endpoint_url and not self.supabase_url:
                missing.append("STORAGE_ENDPOINT_URL or SUPABASE_URL")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, call get_settings.cache_clear() or override the dependency.
    """
    return Settings()
