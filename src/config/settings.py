"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without an R2 bucket.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.errors import ConfigurationError
from ..core.gallery.sampler import GalleryOrdering


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    """

    # API Configuration
    api_title: str = "Memorial Gallery API"
    api_version: str = "v1"

    # R2/S3 Storage Configuration
    r2_account_id: str = Field(
        default="",
        description="Cloudflare account ID for R2"
    )
    r2_access_key_id: str = Field(
        default="",
        description="R2 access key ID"
    )
    r2_secret_access_key: str = Field(
        default="",
        description="R2 secret access key"
    )
    r2_bucket_name: str = Field(
        default="family-archive-uploads",
        description="R2 bucket holding every uploaded photo and video"
    )
    r2_endpoint_url: Optional[str] = Field(
        default=None,
        description="R2 endpoint URL. Auto-constructed from account_id if not provided."
    )
    r2_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real R2. Enables local dev without object storage."
    )

    # Uploads
    default_contributor: str = Field(
        default="Memorial_Guest",
        description="Contributor folder used when an upload doesn't name one"
    )
    presigned_url_expiry_seconds: int = Field(
        default=3600,
        gt=0,
        description="Validity window for upload and download URLs"
    )
    max_upload_size_mb: int = Field(
        default=50,
        gt=0,
        description="Maximum body size for uploads pushed through the API"
    )

    # Gallery
    gallery_max_items: int = Field(
        default=50,
        ge=0,
        description="Maximum photos returned per gallery request"
    )
    gallery_ordering: GalleryOrdering = Field(
        default=GalleryOrdering.SHUFFLED,
        description="shuffled (random sample) or newest_first"
    )
    list_page_size: int = Field(
        default=1000,
        gt=0,
        le=1000,
        description="Keys requested per listing page. R2 caps pages at 1000."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def r2_endpoint(self) -> str:
        """
        Construct R2 endpoint URL from account ID.

        R2 endpoints follow the pattern: https://{account_id}.r2.cloudflarestorage.com
        """
        if self.r2_endpoint_url:
            return self.r2_endpoint_url
        return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def validate_required_fields(self) -> list[str]:
        """
        Validate that storage credentials are set unless in mock mode.

        Returns list of missing required fields.
        """
        missing = []

        if not self.r2_mock_mode:
            if not self.r2_account_id:
                missing.append("R2_ACCOUNT_ID")
            if not self.r2_access_key_id:
                missing.append("R2_ACCESS_KEY_ID")
            if not self.r2_secret_access_key:
                missing.append("R2_SECRET_ACCESS_KEY")
            if not self.r2_bucket_name:
                missing.append("R2_BUCKET_NAME")

        return missing

    def require_storage_config(self) -> None:
        """
        Raise ConfigurationError when storage credentials are missing.

        Called before any other work in the upload and gallery flows.
        """
        missing = self.validate_required_fields()
        if missing:
            raise ConfigurationError(
                "Storage not configured",
                details=f"Missing: {', '.join(missing)}",
            )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
