from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(
        default="customer-support-helper",
        validation_alias=AliasChoices("APP_NAME", "app_name"),
        description="Application name (also sent to the provider as the X-Title header).",
    )
    app_env: str = Field(
        default="production",
        validation_alias=AliasChoices("APP_ENV", "app_env"),
        description="Runtime environment: development|production.",
    )
    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("PORT", "port"),
        description="Port used by scripts/serve.py.",
    )

    # LLM provider (OpenAI-compatible chat completions API; OpenRouter by default)
    # Keys are secrets: never log them.
    openrouter_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENROUTER_API_KEY", "openrouter_api_key"),
        description="OpenRouter API key. Takes precedence over OPENAI_API_KEY.",
    )
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
        description="Fallback API key when OPENROUTER_API_KEY is not set.",
    )
    llm_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        validation_alias=AliasChoices("LLM_BASE_URL", "OPENAI_BASE_URL", "llm_base_url"),
        description="Base URL of the chat completions API (override for proxies/emulators).",
    )
    http_referer: str | None = Field(
        default=None,
        validation_alias=AliasChoices("HTTP_REFERER", "http_referer"),
        description="Optional HTTP-Referer header used by OpenRouter for app attribution.",
    )
    default_model: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DEFAULT_MODEL", "default_model"),
        description="Model used when a request does not name one.",
    )
    llm_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("LLM_TIMEOUT_SECONDS", "llm_timeout_seconds"),
        description="Timeout for provider requests (seconds). Unset means wait indefinitely.",
    )

    # Flat-file query logs (JSON arrays)
    metrics_log_path: str = Field(
        default="./metrics/metrics.json",
        validation_alias=AliasChoices("METRICS_LOG_PATH", "metrics_log_path"),
        description="JSON file collecting one QueryMetrics record per request.",
    )
    safety_log_path: str = Field(
        default="./reports/safety-reports/safety-checks.json",
        validation_alias=AliasChoices("SAFETY_LOG_PATH", "safety_log_path"),
        description="JSON file collecting one safety verdict record per request.",
    )

    @property
    def llm_api_key(self) -> str | None:
        return self.openrouter_api_key or self.openai_api_key or None

    @property
    def is_development(self) -> bool:
        return str(self.app_env).strip().lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
