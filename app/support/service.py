from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Protocol

from app.core.llm.openai_client import ChatCompletion, LLMError
from app.core.metrics import record_support_query
from app.domain.exceptions import SupportPipelineError
from app.support.cost import calculate_cost
from app.support.prompt import build_support_prompts
from app.support.response_parser import parse_json_response, validate_response
from app.support.safety import check_input_safety, is_blocked, sanitize_query
from app.support.schemas import (
    QueryMetrics,
    QueryResult,
    SafetyCheck,
    SupportResponse,
)

logger = logging.getLogger("app.support_query")

COMPLETION_TEMPERATURE = 0.3
BLOCKED_QUERY_LOG_CHARS = 100
QUERY_LOG_CHARS = 200

SAFETY_REFUSAL_RESPONSE = SupportResponse(
    answer=(
        "I'm sorry, but I can't help with that request. "
        "Please rephrase your question about our products or services."
    ),
    confidence=1.0,
    actions=[
        "Rephrase your question without special instructions",
        "Contact a human support agent for further assistance",
    ],
    category="other",
    tags=["safety", "moderation"],
)


def _error_response(message: str) -> SupportResponse:
    return SupportResponse(
        answer=f"I apologize, but I encountered an error processing your request: {message}",
        confidence=0.0,
        actions=["Please try again", "Contact support if the issue persists"],
        category="other",
        tags=["error"],
    )


class LLMClient(Protocol):
    async def complete_json(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float = ...,
    ) -> ChatCompletion: ...


class QueryLogWriter(Protocol):
    async def log_query_data(
        self,
        *,
        metrics: QueryMetrics,
        query: str,
        safety: SafetyCheck,
        request_id: str | None = None,
    ) -> None: ...


def _elapsed_ms(started: float) -> int:
    return max(int(round((time.perf_counter() - started) * 1000.0)), 0)


def _build_metrics(
    *,
    model: str,
    query: str,
    latency_ms: int,
    request_id: str | None,
    tokens_prompt: int = 0,
    tokens_completion: int = 0,
    estimated_cost_usd: float = 0.0,
) -> QueryMetrics:
    return QueryMetrics(
        timestamp=datetime.now(UTC).isoformat(),
        model=model,
        query=query,
        latency_ms=latency_ms,
        tokens_prompt=tokens_prompt,
        tokens_completion=tokens_completion,
        total_tokens=tokens_prompt + tokens_completion,
        estimated_cost_usd=estimated_cost_usd,
        request_id=request_id,
    )


class SupportQueryService:
    """
    Runs one support question through the pipeline:

    safety check -> (blocked | sanitize -> model call -> parse -> validate) -> metrics.

    Every terminal state (blocked, failed, success) returns a fully populated
    QueryResult and writes the query logs exactly once.
    """

    def __init__(self, *, llm_client: LLMClient, query_log: QueryLogWriter):
        self._llm = llm_client
        self._query_log = query_log

    async def process_query(
        self, question: str, model: str, *, request_id: str | None = None
    ) -> QueryResult:
        started = time.perf_counter()
        safety = check_input_safety(question)

        if is_blocked(safety):
            metrics = _build_metrics(
                model=model,
                query=question[:BLOCKED_QUERY_LOG_CHARS],
                latency_ms=_elapsed_ms(started),
                request_id=request_id,
            )
            return await self._finish(
                outcome="blocked",
                response=SAFETY_REFUSAL_RESPONSE,
                metrics=metrics,
                safety=safety,
                question=question,
            )

        sanitized = sanitize_query(question)
        system_prompt, user_prompt = build_support_prompts(question=sanitized)

        try:
            completion = await self._llm.complete_json(
                model=model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                temperature=COMPLETION_TEMPERATURE,
            )
            response = validate_response(parse_json_response(completion.content))
        except (LLMError, SupportPipelineError) as exc:
            metrics = _build_metrics(
                model=model,
                query=sanitized[:QUERY_LOG_CHARS],
                latency_ms=_elapsed_ms(started),
                request_id=request_id,
            )
            return await self._finish(
                outcome="failed",
                response=_error_response(str(exc)),
                metrics=metrics,
                safety=safety,
                question=question,
                error_type=type(exc).__name__,
            )

        metrics = _build_metrics(
            model=model,
            query=sanitized[:QUERY_LOG_CHARS],
            latency_ms=_elapsed_ms(started),
            request_id=request_id,
            tokens_prompt=completion.prompt_tokens,
            tokens_completion=completion.completion_tokens,
            estimated_cost_usd=calculate_cost(
                model, completion.prompt_tokens, completion.completion_tokens
            ),
        )
        return await self._finish(
            outcome="success",
            response=response,
            metrics=metrics,
            safety=safety,
            question=question,
        )

    async def _finish(
        self,
        *,
        outcome: str,
        response: SupportResponse,
        metrics: QueryMetrics,
        safety: SafetyCheck,
        question: str,
        error_type: str | None = None,
    ) -> QueryResult:
        try:
            await self._query_log.log_query_data(
                metrics=metrics,
                query=question,
                safety=safety,
                request_id=metrics.request_id,
            )
        except Exception:  # noqa: BLE001 - query logs are best-effort
            logger.exception(
                "Query log write failed", extra={"request_id": metrics.request_id}
            )

        record_support_query(
            outcome=outcome,
            risk_level=safety.risk_level.value,
            tokens_prompt=metrics.tokens_prompt,
            tokens_completion=metrics.tokens_completion,
            estimated_cost_usd=metrics.estimated_cost_usd,
        )

        # IMPORTANT: metadata only; never log question text or model output.
        logger.info(
            "Support query finished",
            extra={
                "request_id": metrics.request_id,
                "outcome": outcome,
                "risk_level": safety.risk_level.value,
                "model": metrics.model,
                "duration_ms": metrics.latency_ms,
                "total_tokens": metrics.total_tokens,
                "error_type": error_type,
            },
        )
        return QueryResult(response=response, metrics=metrics, safety=safety)
