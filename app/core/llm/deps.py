from __future__ import annotations

from functools import lru_cache

from app.core.llm.openai_client import LLMConfig, OpenAIClient
from app.core.settings import get_settings


@lru_cache
def get_llm_config() -> LLMConfig:
    """Fold provider-related settings into one immutable config (built once per process)."""

    settings = get_settings()
    return LLMConfig(
        api_key=settings.llm_api_key,
        base_url=settings.llm_base_url,
        timeout_seconds=settings.llm_timeout_seconds,
        http_referer=settings.http_referer,
        app_name=settings.app_name,
    )


def get_llm_client() -> OpenAIClient:
    """
    Dependency provider for the chat completions client.

    A missing API key is not an error here: the client raises LLMUnavailableError on
    use, which the query pipeline turns into a degraded answer.
    """

    return OpenAIClient(config=get_llm_config())
