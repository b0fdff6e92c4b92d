"""Application configuration via pydantic settings."""

from functools import lru_cache
from pathlib import Path

from typing import Annotated, Any

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "Friendly Reservations API"
    api_prefix: str = Field("/api", alias="API_PREFIX")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(..., alias="DATABASE_URL")
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")
    db_lock_timeout_seconds: float = Field(5.0, alias="DB_LOCK_TIMEOUT_SECONDS")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )
    refresh_token_expire_days: int = Field(7, alias="REFRESH_TOKEN_EXPIRE_DAYS")
    bcrypt_rounds: int = Field(12, alias="BCRYPT_ROUNDS")

    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    admin_username: str = Field("admin", alias="ADMIN_USERNAME")
    admin_password: str = Field("friendlyi2025!", alias="ADMIN_PASSWORD")
    seed_sample_data: bool = Field(True, alias="SEED_SAMPLE_DATA")

    upload_dir: Path = Field(
        default_factory=lambda: Path.home() / "friendly-i" / "uploads",
        alias="UPLOAD_DIR",
    )
    max_upload_bytes: int = Field(5 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")

    location_url_pattern: str = Field(
        r"^https?://([\w-]+\.)?(naver\.com|naver\.me)(/.*)?$",
        alias="LOCATION_URL_PATTERN",
    )

    activity_log_queue_size: int = Field(100, alias="ACTIVITY_LOG_QUEUE_SIZE")
    activity_log_workers: int = Field(2, alias="ACTIVITY_LOG_WORKERS")

    member_cache_max_entries: int = Field(1000, alias="MEMBER_CACHE_MAX_ENTRIES")
    member_cache_write_ttl_seconds: float = Field(
        30 * 60, alias="MEMBER_CACHE_WRITE_TTL_SECONDS"
    )
    member_cache_access_ttl_seconds: float = Field(
        10 * 60, alias="MEMBER_CACHE_ACCESS_TTL_SECONDS"
    )

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        alias="CORS_ALLOW_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    rate_limit_login: str = Field("10/minute", alias="RATE_LIMIT_LOGIN")

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        case_sensitive=False,
    )

    def model_post_init(self, __context: Any) -> None:
        """Clamp the activity log worker pool to its supported range."""

        workers = min(max(self.activity_log_workers, 2), 5)
        object.__setattr__(self, "activity_log_workers", workers)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
