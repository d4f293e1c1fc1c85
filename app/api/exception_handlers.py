from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.domain.exceptions import BusinessValidationError

logger = logging.getLogger("app.request_validation")


def _log_rejected_request(request: Request, *, status_code: int, error: str) -> None:
    # IMPORTANT: do not log request bodies (customer questions) or query strings.
    logger.info(
        "Request rejected",
        extra={
            "request_id": getattr(request.state, "request_id", None)
            or request.headers.get("X-Request-ID"),
            "http_method": request.method,
            "request_path": request.url.path,  # no query string
            "status_code": status_code,
            "error": error,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register application exception handlers."""

    @app.exception_handler(BusinessValidationError)
    async def handle_business_validation_error(
        request: Request,
        exc: BusinessValidationError,
    ) -> JSONResponse:
        _log_rejected_request(request, status_code=400, error="business_validation")
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        # Malformed JSON / wrong field types are client errors: 400, not FastAPI's 422.
        _log_rejected_request(request, status_code=400, error="request_validation")
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request body. Expected JSON: {question, model?}."},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Not Found",
                    "message": "The requested endpoint does not exist",
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        # Stack trace is logged by HttpLoggingMiddleware; keep the body generic.
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": "An unexpected error occurred",
            },
        )
