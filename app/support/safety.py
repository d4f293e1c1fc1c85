"""Static input-safety checks for customer questions.

Everything here is deterministic and side-effect free: no I/O, no logging, no model calls.
"""

from __future__ import annotations

import re

from app.support.schemas import RiskLevel, SafetyCheck

MIN_QUERY_LENGTH = 3
MAX_QUERY_LENGTH = 5000
SPECIAL_CHAR_RATIO_THRESHOLD = 0.3

_INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"prompt.?injection",
        r"ignore.?previous",
        r"forget.?instructions",
        r"system.?prompt",
        r"new.?instructions",
        r"override",
        r"jailbreak",
        r"hack",
        r"exploit",
    )
)

HIGH_RISK_KEYWORDS: tuple[str, ...] = (
    "ignore all previous",
    "forget everything",
    "new instructions",
    "system override",
    "developer mode",
)

MEDIUM_RISK_KEYWORDS: tuple[str, ...] = (
    "pretend",
    "act as",
    "roleplay",
    "simulate",
)

_SPECIAL_CHARS_RE = re.compile(r"[<>{}\[\]\\/|`~!@#$%^&*+=]")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def check_input_safety(query: str) -> SafetyCheck:
    """
    Classify a raw customer question. The first matching rule wins.

    Only a failed HIGH verdict is meant to stop the model call; MEDIUM verdicts pass
    through and are recorded in the safety log.
    """

    if not query or len(query.strip()) < MIN_QUERY_LENGTH:
        return SafetyCheck(
            passed=False, risk_level=RiskLevel.LOW, reason="Query too short or empty"
        )

    if len(query) > MAX_QUERY_LENGTH:
        return SafetyCheck(
            passed=False, risk_level=RiskLevel.HIGH, reason="Query exceeds maximum length"
        )

    for pattern in _INJECTION_PATTERNS:
        if pattern.search(query):
            return SafetyCheck(
                passed=False,
                risk_level=RiskLevel.HIGH,
                reason="Detected prompt injection pattern",
            )

    lowered = query.lower()
    for keyword in HIGH_RISK_KEYWORDS:
        if keyword in lowered:
            return SafetyCheck(
                passed=False,
                risk_level=RiskLevel.HIGH,
                reason=f"Contains high-risk keyword: {keyword}",
            )

    for keyword in MEDIUM_RISK_KEYWORDS:
        if keyword in lowered:
            return SafetyCheck(
                passed=True,
                risk_level=RiskLevel.MEDIUM,
                reason=f"Contains medium-risk keyword: {keyword}",
            )

    special_ratio = len(_SPECIAL_CHARS_RE.findall(query)) / len(query)
    if special_ratio > SPECIAL_CHAR_RATIO_THRESHOLD:
        return SafetyCheck(
            passed=True,
            risk_level=RiskLevel.MEDIUM,
            reason="High ratio of special characters detected",
        )

    return SafetyCheck(passed=True, risk_level=RiskLevel.LOW, reason="No safety concerns detected")


def is_blocked(safety: SafetyCheck) -> bool:
    """True when the verdict must stop the request before the model call."""
    return not safety.passed and safety.risk_level is RiskLevel.HIGH


def sanitize_query(query: str) -> str:
    """Drop control characters (tab, LF and CR are kept), trim, and cap the length."""
    cleaned = _CONTROL_CHARS_RE.sub("", query).strip()
    # Re-trim after truncation so sanitize(sanitize(x)) == sanitize(x).
    return cleaned[:MAX_QUERY_LENGTH].rstrip()
