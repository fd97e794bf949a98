"""Configuration schemas for the contact enrichment client."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class RateLimiterPolicy(str, Enum):
    """How outbound requests are paced once the server reports its limit."""

    DISABLED = "disabled"
    SMOOTH = "smooth"
    BURST = "burst"


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "text"
    file_path: str | None = None
    max_file_size_mb: int = 100
    backup_count: int = 5
    include_timestamps: bool = True
    log_http_traffic: bool = False

    @field_validator("format")
    @classmethod
    def _normalize_format(cls, value: str) -> str:
        if not isinstance(value, str):
            return value  # type: ignore[return-value]
        lowered = value.lower()
        if lowered in {"pretty", "text", "plain"}:
            return "text"
        if lowered in {"json", "structured"}:
            return "json"
        return value


class ClientConfig(BaseModel):
    """Configuration for the enrichment API client."""

    base_url: str = Field(
        default="https://api.fullcontact.com/v2", description="API endpoint root"
    )
    rate_limiter_policy: RateLimiterPolicy = Field(
        default=RateLimiterPolicy.SMOOTH, description="Client-side request pacing policy"
    )
    worker_count: int = Field(default=4, ge=1, description="Fixed size of the dispatch pool")
    burst_seconds: float = Field(
        default=5.0, gt=0.0, description="Seconds worth of permits a BURST limiter may store"
    )
    timeout_seconds: float = Field(default=30.0, gt=0.0, description="HTTP timeout in seconds")
    retry_attempts: int = Field(
        default=3, ge=1, description="Attempts per request on timeouts/connection errors"
    )
    retry_backoff_seconds: float = Field(
        default=1.0, ge=0.0, description="Initial retry backoff delay in seconds"
    )
    api_key: str | None = Field(default=None, description="API key (overrides api_key_env_var)")
    api_key_env_var: str = Field(
        default="FULLCONTACT_API_KEY",  # pragma: allowlist secret
        description="Environment variable holding the API key",
    )
    user_agent: str = Field(default="contact-enrichment-client/0.1.0")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra headers passed through verbatim"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("rate_limiter_policy", mode="before")
    @classmethod
    def _normalize_policy(cls, value: object) -> object:
        if isinstance(value, str):
            return value.lower()
        return value

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


__all__ = ["ClientConfig", "LoggingConfig", "RateLimiterPolicy"]
