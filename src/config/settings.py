"""
Application Settings.

Centralized configuration using Pydantic Settings with environment variable loading.
Every field has a development default so the core runs against the in-memory
store without any environment at all.

Production Mode:
    When app_env="production", additional validations apply:
    - debug must be False
    - store_backend must be "http" with content_api_url set
    - cors_allowed_origins cannot be ["*"]
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TADABBUR_",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(default=True, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    api_host: str = Field(default="0.0.0.0", description="API bind host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API bind port")

    # -------------------------------------------------------------------------
    # Content Store
    # -------------------------------------------------------------------------
    store_backend: Literal["memory", "http"] = Field(
        default="memory",
        description="Content store implementation: in-memory reference store or remote REST API",
    )
    content_api_url: str | None = Field(
        default=None,
        description="Base URL of the remote content API (e.g. http://localhost:3001/api)",
    )
    content_api_token: SecretStr | None = Field(
        default=None,
        description="Bearer token sent to the remote content API",
    )

    # -------------------------------------------------------------------------
    # Timeouts and Retries
    # -------------------------------------------------------------------------
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Transport timeout for a single content API request",
    )
    like_lookup_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound on a single like-status lookup before it falls back to not-liked",
    )
    read_retry_attempts: int = Field(
        default=2,
        ge=1,
        le=2,
        description="Total attempts for idempotent reads (at most one automatic retry)",
    )

    # -------------------------------------------------------------------------
    # Engagement
    # -------------------------------------------------------------------------
    engagement_max_viewers: int = Field(
        default=1000,
        ge=1,
        description="Viewer feeds cached by the API before the least recently used is evicted",
    )

    # -------------------------------------------------------------------------
    # Circuit Breaker
    # -------------------------------------------------------------------------
    circuit_failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive store failures before the circuit opens",
    )
    circuit_recovery_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Seconds the circuit stays open before a trial request reaches the store",
    )

    # -------------------------------------------------------------------------
    # CORS Settings
    # -------------------------------------------------------------------------
    cors_allowed_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins. Use ['*'] for development only.",
    )

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Validate store selection and production hardening."""
        if self.store_backend == "http" and not self.content_api_url:
            raise ValueError("content_api_url must be set when store_backend is 'http'")

        if self.app_env == "production":
            errors = []

            if self.debug:
                errors.append("debug must be False in production")

            if self.store_backend != "http":
                errors.append("store_backend must be 'http' in production")

            if "*" in self.cors_allowed_origins:
                errors.append("cors_allowed_origins cannot contain '*' in production")

            if errors:
                raise ValueError(
                    f"Production configuration errors: {'; '.join(errors)}"
                )

        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Call get_settings.cache_clear() to reload settings if needed.
    """
    return Settings()
