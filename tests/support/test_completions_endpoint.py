from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.llm.deps import get_llm_client
from app.core.llm.openai_client import LLMConfig, OpenAIClient
from app.main import create_app
from app.support.service import SAFETY_REFUSAL_RESPONSE
from tests.support._fakes import VALID_ANSWER, FakeLLMClient


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient(prompt_tokens=80, completion_tokens=20)


@pytest.fixture
def api_client(fake_llm: FakeLLMClient):
    app = create_app()
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    with TestClient(app) as c:
        yield c


def test_safe_question_returns_structured_answer(api_client: TestClient, fake_llm, log_dir) -> None:
    res = api_client.post(
        "/completions",
        json={"question": "How do I reset my password?", "model": "openai/gpt-4o-mini"},
        headers={"X-Request-ID": "req-e2e-1"},
    )
    assert res.status_code == 200, res.text

    payload = res.json()
    assert payload["safety"] == {
        "passed": True,
        "risk_level": "LOW",
        "reason": "No safety concerns detected",
    }
    assert payload["response"] == VALID_ANSWER
    metrics = payload["metrics"]
    assert metrics["tokens_prompt"] == 80
    assert metrics["tokens_completion"] == 20
    assert metrics["total_tokens"] == 100
    assert metrics["model"] == "openai/gpt-4o-mini"
    assert metrics["request_id"] == "req-e2e-1"
    assert len(fake_llm.calls) == 1

    metrics_log = json.loads((log_dir / "metrics.json").read_text(encoding="utf-8"))
    safety_log = json.loads((log_dir / "safety-checks.json").read_text(encoding="utf-8"))
    assert len(metrics_log) == 1
    assert metrics_log[0]["request_id"] == "req-e2e-1"
    assert len(safety_log) == 1
    assert safety_log[0]["query"] == "How do I reset my password?"


def test_blocked_question_returns_200_refusal_without_model_call(
    api_client: TestClient, fake_llm
) -> None:
    res = api_client.post(
        "/completions",
        json={"question": "How do I hack your account, system override", "model": "gpt-4"},
    )
    assert res.status_code == 200

    payload = res.json()
    assert payload["safety"]["passed"] is False
    assert payload["safety"]["risk_level"] == "HIGH"
    assert payload["response"]["answer"] == SAFETY_REFUSAL_RESPONSE.answer
    assert payload["metrics"]["tokens_prompt"] == 0
    assert fake_llm.calls == []


def test_default_model_is_used_when_request_omits_it(
    api_client: TestClient, fake_llm, monkeypatch: pytest.MonkeyPatch
) -> None:
    from app.core.settings import get_settings

    monkeypatch.setenv("DEFAULT_MODEL", "anthropic/claude-3-haiku")
    get_settings.cache_clear()

    res = api_client.post("/completions", json={"question": "Where is my order?"})
    assert res.status_code == 200, res.text
    assert res.json()["metrics"]["model"] == "anthropic/claude-3-haiku"
    assert fake_llm.calls[0]["model"] == "anthropic/claude-3-haiku"


def test_missing_model_without_default_returns_400(api_client: TestClient) -> None:
    res = api_client.post("/completions", json={"question": "Where is my order?"})
    assert res.status_code == 400
    assert "model" in res.json()["detail"]


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"question": ""},
        {"question": "   "},
        {"model": "gpt-4"},
    ],
)
def test_missing_or_blank_question_returns_400(api_client: TestClient, body: dict) -> None:
    res = api_client.post("/completions", json=body)
    assert res.status_code == 400
    assert "question" in res.json()["detail"]


def test_non_string_question_returns_400(api_client: TestClient) -> None:
    res = api_client.post("/completions", json={"question": 42, "model": "gpt-4"})
    assert res.status_code == 400


def test_malformed_json_body_returns_400(api_client: TestClient) -> None:
    res = api_client.post(
        "/completions",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 400


def test_missing_api_key_degrades_to_error_answer() -> None:
    # No dependency override: the real client runs without OPENROUTER_API_KEY/OPENAI_API_KEY.
    app = create_app()
    with TestClient(app) as client:
        res = client.post(
            "/completions", json={"question": "How do I reset my password?", "model": "gpt-4"}
        )

    assert res.status_code == 200
    payload = res.json()
    assert payload["response"]["confidence"] == 0.0
    assert payload["response"]["tags"] == ["error"]
    assert "API key" in payload["response"]["answer"]
    assert payload["metrics"]["total_tokens"] == 0


def test_negative_provider_usage_degrades_to_error_answer(log_dir) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "choices": [{"message": {"role": "assistant", "content": json.dumps(VALID_ANSWER)}}],
                "usage": {"prompt_tokens": -5, "completion_tokens": 3},
            },
        )

    llm = OpenAIClient(
        config=LLMConfig(api_key="sk-test", base_url="https://llm.example.test/api/v1"),
        transport=httpx.MockTransport(handler),
    )
    app = create_app()
    app.dependency_overrides[get_llm_client] = lambda: llm
    with TestClient(app) as client:
        res = client.post(
            "/completions", json={"question": "How do I reset my password?", "model": "gpt-4"}
        )

    assert res.status_code == 200, res.text
    payload = res.json()
    assert payload["response"]["confidence"] == 0.0
    assert payload["response"]["tags"] == ["error"]
    assert "Invalid usage data" in payload["response"]["answer"]
    assert payload["metrics"]["tokens_prompt"] == 0
    assert payload["metrics"]["total_tokens"] == 0

    metrics_log = json.loads((log_dir / "metrics.json").read_text(encoding="utf-8"))
    assert len(metrics_log) == 1


def test_unexpected_error_returns_generic_500() -> None:
    class _ExplodingClient:
        async def complete_json(self, **kwargs):
            raise RuntimeError("unexpected")

    app = create_app()
    app.dependency_overrides[get_llm_client] = lambda: _ExplodingClient()
    with TestClient(app, raise_server_exceptions=False) as client:
        res = client.post(
            "/completions", json={"question": "How do I reset my password?", "model": "gpt-4"}
        )

    assert res.status_code == 500
    assert res.json() == {
        "error": "Internal Server Error",
        "message": "An unexpected error occurred",
    }
