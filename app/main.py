from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.exception_handlers import register_exception_handlers
from app.api.schemas import HealthOut, ServiceInfoOut
from app.core.logging import setup_logging
from app.core.metrics import PrometheusMetricsMiddleware, metrics_router
from app.core.middleware.http_logging import HttpLoggingMiddleware
from app.core.settings import get_settings
from app.support.router import router as support_router

setup_logging()
logger = logging.getLogger("app.startup")

API_VERSION = "1.0.0"


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Defer settings/env access until application startup (keeps imports side-effect free).
        settings = get_settings()
        if not settings.llm_api_key:
            logger.warning(
                "No LLM API key configured; completions will return degraded answers "
                "(set OPENROUTER_API_KEY or OPENAI_API_KEY)"
            )
        if not settings.default_model:
            logger.info("DEFAULT_MODEL not set; requests must name a model")
        yield

    app = FastAPI(
        title="Customer Support Helper API",
        description=(
            "Answers customer-support questions with an LLM and returns a structured answer, "
            "usage metrics and a safety verdict.\n\n"
            "Design principles:\n"
            "- Every question passes a static input-safety check; high-risk input never "
            "reaches the model.\n"
            "- Model output is parsed and validated; failures degrade to a safe answer "
            "instead of an HTTP error.\n"
            "- Application logs carry metadata only; question text is kept in the flat-file "
            "query logs (truncated)."
        ),
        version=API_VERSION,
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "health",
                "description": "Service info and uptime checks.",
            },
            {
                "name": "completions",
                "description": "Submit a customer question and receive a structured answer.",
            },
            {
                "name": "monitoring",
                "description": "Prometheus-compatible metrics endpoint.",
            },
        ],
    )

    app.add_middleware(PrometheusMetricsMiddleware)
    app.add_middleware(HttpLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    register_exception_handlers(app)

    @app.get(
        "/",
        response_model=ServiceInfoOut,
        tags=["health"],
        summary="Service info",
    )
    async def service_info() -> ServiceInfoOut:
        return ServiceInfoOut(
            status="ok",
            message="LLM Integration API is running",
            version=API_VERSION,
            timestamp=datetime.now(UTC).isoformat(),
        )

    @app.get(
        "/health",
        response_model=HealthOut,
        tags=["health"],
        summary="Health check",
        description=(
            "Lightweight endpoint to verify the API process is running.\n\n"
            "This endpoint intentionally does not call the LLM provider."
        ),
    )
    async def health() -> HealthOut:
        return HealthOut(status="ok")

    app.include_router(metrics_router)
    app.include_router(support_router)
    return app


app = create_app()
