from __future__ import annotations

import pytest

_PROVIDER_ENV_VARS = (
    "OPENROUTER_API_KEY",
    "OPENAI_API_KEY",
    "DEFAULT_MODEL",
    "LLM_BASE_URL",
    "OPENAI_BASE_URL",
    "HTTP_REFERER",
    "LLM_TIMEOUT_SECONDS",
)


@pytest.fixture()
def log_dir(tmp_path):
    return tmp_path / "logs"


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, log_dir):
    for name in _PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("METRICS_LOG_PATH", str(log_dir / "metrics.json"))
    monkeypatch.setenv("SAFETY_LOG_PATH", str(log_dir / "safety-checks.json"))

    # Settings and the provider config are cached; clear so each test sees its own env.
    from app.core.llm.deps import get_llm_config
    from app.core.settings import get_settings

    get_settings.cache_clear()
    get_llm_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_llm_config.cache_clear()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from app.main import create_app

    app = create_app()
    with TestClient(app) as c:
        yield c
