from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.core.settings import get_settings
from app.domain.exceptions import BusinessValidationError
from app.support.deps import get_support_query_service
from app.support.schemas import CompletionRequest, QueryResult
from app.support.service import SupportQueryService

router = APIRouter(tags=["completions"])


def _resolve_question(body: CompletionRequest) -> str:
    question = body.question
    if not isinstance(question, str) or not question.strip():
        raise BusinessValidationError(
            'Missing or invalid "question" field. It must be a non-empty string.'
        )
    return question


def _resolve_model(body: CompletionRequest) -> str:
    model = body.model or get_settings().default_model
    if not model or not model.strip():
        raise BusinessValidationError(
            'Missing or invalid "model" field. Provide it or configure DEFAULT_MODEL.'
        )
    return model


@router.post(
    "/completions",
    response_model=QueryResult,
    summary="Answer a customer support question",
    description=(
        "Runs the question through the input safety check and, unless it is blocked, asks "
        "the configured LLM for a structured answer.\n\n"
        "Always returns 200 with a complete `QueryResult` once the request is accepted: "
        "blocked questions get a fixed refusal and provider/parsing failures get a "
        "degraded answer with `confidence` 0.0. Returns 400 when `question` is missing "
        "or no model can be resolved."
    ),
)
async def create_completion(
    body: CompletionRequest,
    request: Request,
    service: SupportQueryService = Depends(get_support_query_service),
) -> QueryResult:
    question = _resolve_question(body)
    model = _resolve_model(body)
    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")
    return await service.process_query(question, model, request_id=request_id)
