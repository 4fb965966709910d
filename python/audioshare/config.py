"""Application settings loaded from environment variables.

Environment Configuration:
    AUDIOSHARE_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: SQLAlchemy connection string (required)

Blob Storage Configuration:
    BLOB_BACKEND: Where uploaded files live (local | supabase | memory)
    MEDIA_DIR: Directory used by the local backend
    SUPABASE_URL / SUPABASE_SERVICE_KEY / STORAGE_BUCKET: Supabase backend

Note: PostgreSQL is the deployment database. The SQL issued by the stores
is portable, so a SQLite URL works for local runs and tests.
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class BlobBackend(str, Enum):
    """Supported blob storage backends."""

    LOCAL = "local"
    SUPABASE = "supabase"
    MEMORY = "memory"


class Settings(BaseSettings):
    """Application configuration.

    Validation rules:
    - DATABASE_URL is always required
    - SUPABASE_URL and SUPABASE_SERVICE_KEY are required when BLOB_BACKEND=supabase
    - The memory blob backend is refused in staging/prod
    """

    audioshare_env: Environment = Field(default=Environment.LOCAL, alias="AUDIOSHARE_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]

    # Blob storage
    blob_backend: BlobBackend = Field(default=BlobBackend.LOCAL, alias="BLOB_BACKEND")
    media_dir: str = Field(default="media", alias="MEDIA_DIR")
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_service_key: str | None = Field(default=None, alias="SUPABASE_SERVICE_KEY")
    storage_bucket: str = Field(default="media", alias="STORAGE_BUCKET")
    max_upload_bytes: int = Field(default=50 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")  # 50 MB

    # Listing
    default_page_size: int = Field(default=10, gt=0, alias="DEFAULT_PAGE_SIZE")

    # Sessions and credentials
    session_cookie_name: str = Field(default="session_id", alias="SESSION_COOKIE_NAME")
    argon2_time_cost: int = Field(default=2, ge=1, alias="ARGON2_TIME_COST")
    argon2_memory_cost: int = Field(default=65536, ge=8, alias="ARGON2_MEMORY_COST")
    argon2_parallelism: int = Field(default=1, ge=1, alias="ARGON2_PARALLELISM")

    log_json: bool = Field(default=True, alias="LOG_JSON")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Ensure backend-specific settings are present."""
        if self.blob_backend == BlobBackend.SUPABASE:
            missing = []
            if not self.supabase_url:
                missing.append("SUPABASE_URL")
            if not self.supabase_service_key:
                missing.append("SUPABASE_SERVICE_KEY")
            if missing:
                raise ValueError(
                    f"Missing required Supabase storage settings: {', '.join(missing)}"
                )

        if self.blob_backend == BlobBackend.MEMORY and self.audioshare_env in (
            Environment.STAGING,
            Environment.PROD,
        ):
            raise ValueError(
                f"BLOB_BACKEND=memory is not allowed for AUDIOSHARE_ENV={self.audioshare_env.value}"
            )

        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
