"""Application configuration using pydantic-settings.

Values come from ``EXTRATHEME_*`` environment variables or a ``.env`` file.
Rate-limit parameters default to what keeps a single shop under the Admin
REST API's two requests per second.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EXTRATHEME_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    port: int = 8080
    environment: str = "development"
    log_level: str = "INFO"

    # Admin API
    shopify_api_version: str = "2024-10"
    request_timeout: float = 30.0

    # CLI only; the server takes sessions from its session store
    shop: str = ""
    access_token: str = ""

    # Retry of throttled asset reads
    fetch_max_retries: int = 3
    default_retry_after: float = 2.0

    # Admission control
    compare_max_in_flight: int = 1
    compare_interval: float = 0.6
    merge_max_in_flight: int = 5
    merge_interval: float = 0.5

    # Overall deadline per operation in seconds (None: no deadline)
    operation_timeout: float | None = None

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known value."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v_upper

    @field_validator("compare_max_in_flight", "merge_max_in_flight")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("batch size must be at least 1")
        return v

    @field_validator("compare_interval", "merge_interval", "default_retry_after")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v < 0:
            raise ValueError("intervals must not be negative")
        return v

    @field_validator("fetch_max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("fetch_max_retries must not be negative")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once and cached for the lifetime of the application.
    """
    return Settings()
