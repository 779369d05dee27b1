from __future__ import annotations

from pydantic import Field, SecretStr, conint, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
    Limits,
)


class SafeNestConfig(BaseSettings):
    """Client configuration, from keyword arguments or SAFENEST_* env vars."""

    model_config = SettingsConfigDict(
        env_prefix="SAFENEST_",
        frozen=True,
        extra="ignore",
    )

    api_key: SecretStr = Field(description="SafeNest API key (sent as a bearer token)")
    timeout_ms: conint(ge=Limits.MIN_TIMEOUT_MS, le=Limits.MAX_TIMEOUT_MS) = Field(
        default=DEFAULT_TIMEOUT_MS,
        description="Per-attempt request timeout in milliseconds",
    )
    max_retries: conint(ge=0, le=Limits.MAX_RETRIES) = Field(
        default=DEFAULT_MAX_RETRIES,
        description="Retry attempts for transient failures",
    )
    retry_delay_ms: conint(ge=1) = Field(
        default=DEFAULT_RETRY_DELAY_MS,
        description="Base delay for exponential backoff in milliseconds",
    )
    base_url: str = Field(default=DEFAULT_BASE_URL)

    @field_validator("api_key")
    @classmethod
    def _validate_api_key(cls, value: SecretStr) -> SecretStr:
        secret = value.get_secret_value().strip()
        if not secret:
            raise ValueError("API key is required")
        if len(secret) < Limits.MIN_API_KEY_LENGTH:
            raise ValueError("API key appears to be invalid (too short)")
        return SecretStr(secret)

    @field_validator("base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        if isinstance(value, str):
            trimmed = value.strip().rstrip("/")
            if not trimmed.startswith(("http://", "https://")):
                raise ValueError("base_url must be an http(s) URL")
            return trimmed
        return value

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000
