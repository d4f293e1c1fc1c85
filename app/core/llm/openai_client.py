from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx


class LLMError(Exception):
    """Base error for provider failures (converted to a degraded answer by callers)."""


class LLMUnavailableError(LLMError):
    """Raised when the provider is not configured (e.g., missing API key)."""


class LLMUpstreamError(LLMError):
    """Raised when the provider call fails or returns an unexpected response."""


@dataclass(frozen=True)
class LLMConfig:
    api_key: str | None
    base_url: str
    timeout_seconds: float | None = None
    http_referer: str | None = None
    app_name: str | None = None


@dataclass(frozen=True)
class ChatCompletion:
    content: str
    prompt_tokens: int
    completion_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class OpenAIClient:
    """
    Minimal client for OpenAI-compatible chat completion APIs (OpenRouter, OpenAI).

    Design notes:
    - No logging in this module (prompts/outputs are customer text).
    - Returns the raw message content; parsing/validation belongs to the caller.
    - Token usage is mandatory: a reply without it is treated as an upstream error.
    """

    def __init__(self, *, config: LLMConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._config = config
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        if self._config.http_referer:
            headers["HTTP-Referer"] = self._config.http_referer
        if self._config.app_name:
            headers["X-Title"] = self._config.app_name
        return headers

    async def complete_json(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
    ) -> ChatCompletion:
        if not self._config.api_key:
            raise LLMUnavailableError(
                "LLM API key is not configured (set OPENROUTER_API_KEY or OPENAI_API_KEY)"
            )

        url = f"{self._config.base_url.rstrip('/')}/chat/completions"
        payload: dict[str, Any] = {
            "model": model,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            # Ask the API for a JSON object (the caller still parses/validates it).
            "response_format": {"type": "json_object"},
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(url, headers=self._headers(), json=payload)
        except httpx.TimeoutException as exc:
            raise LLMUpstreamError("LLM request timed out") from exc
        except httpx.HTTPError as exc:
            raise LLMUpstreamError("LLM request failed") from exc

        if resp.status_code != 200:
            raise LLMUpstreamError(f"LLM service returned HTTP {resp.status_code}")

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except Exception as exc:  # noqa: BLE001
            raise LLMUpstreamError("LLM response did not contain a message") from exc

        if not isinstance(content, str):
            raise LLMUpstreamError("LLM response message content must be text")

        usage = data.get("usage")
        if not isinstance(usage, dict):
            raise LLMUpstreamError("No usage data in LLM response")

        try:
            prompt_tokens = int(usage["prompt_tokens"])
            completion_tokens = int(usage["completion_tokens"])
        except (KeyError, TypeError, ValueError) as exc:
            raise LLMUpstreamError("Incomplete usage data in LLM response") from exc

        if prompt_tokens < 0 or completion_tokens < 0:
            raise LLMUpstreamError("Invalid usage data in LLM response")

        return ChatCompletion(
            content=content,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )
