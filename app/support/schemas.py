from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Categories offered to the model in the system prompt.
SUPPORT_CATEGORIES: tuple[str, ...] = (
    "account",
    "billing",
    "technical",
    "shipping",
    "product",
    "other",
)


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class SupportResponse(BaseModel):
    """Structured answer returned to the caller (model output or a fixed fallback)."""

    model_config = ConfigDict(frozen=True)

    answer: str = Field(description="Answer text shown to the customer.")
    confidence: float = Field(ge=0.0, le=1.0, description="Model confidence in [0, 1].")
    actions: list[str] = Field(description="Ordered recommended next steps.")
    category: str = Field(
        description="Support category (one of: " + ", ".join(SUPPORT_CATEGORIES) + ").",
        examples=["account"],
    )
    tags: list[str] = Field(description="Free-form topic tags.")


class SafetyCheck(BaseModel):
    passed: bool
    risk_level: RiskLevel
    reason: str | None = None


class QueryMetrics(BaseModel):
    timestamp: str = Field(description="ISO-8601 UTC timestamp of pipeline completion.")
    model: str
    query: str = Field(description="Query text, truncated for logging.")
    latency_ms: int = Field(ge=0)
    tokens_prompt: int = Field(ge=0)
    tokens_completion: int = Field(ge=0)
    total_tokens: int = Field(ge=0)
    estimated_cost_usd: float = Field(ge=0.0)
    request_id: str | None = None


class QueryResult(BaseModel):
    response: SupportResponse
    metrics: QueryMetrics
    safety: SafetyCheck


class SafetyLogEntry(BaseModel):
    timestamp: str
    query: str = Field(max_length=500)
    safety: SafetyCheck
    model: str | None = None
    request_id: str | None = None


class CompletionRequest(BaseModel):
    """
    Body of POST /completions.

    Both fields are optional at the schema level so the route can return a controlled
    400 (instead of a 422) when they are missing.
    """

    question: str | None = Field(
        default=None,
        description="Customer question in natural language.",
        examples=["How do I reset my password?"],
    )
    model: str | None = Field(
        default=None,
        description="Provider model id. Falls back to DEFAULT_MODEL when omitted.",
        examples=["openai/gpt-4o-mini"],
    )
