from __future__ import annotations

import json
import re
from typing import Any

from app.domain.exceptions import ResponseParseError, ResponseValidationError
from app.support.schemas import SupportResponse

_JSON_FENCE_OPEN_RE = re.compile(r"^```json\s*")
_FENCE_OPEN_RE = re.compile(r"^```\s*")
_FENCE_CLOSE_RE = re.compile(r"\s*```$")


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = _FENCE_CLOSE_RE.sub("", _JSON_FENCE_OPEN_RE.sub("", cleaned, count=1), count=1)
    elif cleaned.startswith("```"):
        cleaned = _FENCE_CLOSE_RE.sub("", _FENCE_OPEN_RE.sub("", cleaned, count=1), count=1)
    return cleaned


def parse_json_response(text: str) -> Any:
    """
    Decode model output, tolerating a surrounding markdown code fence.

    Models asked for JSON sometimes still answer with ```json ... ```; the fence is
    removed before decoding. Shape checks are left to `validate_response`.
    """

    cleaned = _strip_code_fence(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ResponseParseError(f"Failed to parse JSON response: {exc}") from exc


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_response(candidate: Any) -> SupportResponse:
    """
    Check a decoded candidate field by field and build the typed answer.

    Fields are checked in a fixed order (answer, confidence, actions, category, tags)
    and the first violation is reported. The candidate itself is never modified.
    """

    data: dict[str, Any] = candidate if isinstance(candidate, dict) else {}

    answer = data.get("answer")
    if not isinstance(answer, str) or not answer:
        raise ResponseValidationError("Missing or invalid answer field", field="answer")

    confidence = data.get("confidence")
    if not _is_number(confidence) or not 0 <= confidence <= 1:
        raise ResponseValidationError(
            "Confidence must be a number between 0 and 1", field="confidence"
        )

    actions = data.get("actions")
    if not isinstance(actions, list) or not all(isinstance(a, str) for a in actions):
        raise ResponseValidationError("Actions must be an array", field="actions")

    category = data.get("category")
    if not isinstance(category, str) or not category:
        raise ResponseValidationError("Missing or invalid category field", field="category")

    tags = data.get("tags")
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise ResponseValidationError("Tags must be an array", field="tags")

    return SupportResponse(
        answer=answer,
        confidence=float(confidence),
        actions=list(actions),
        category=category,
        tags=list(tags),
    )
