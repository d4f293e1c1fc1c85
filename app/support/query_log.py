"""Flat-file query logs (metrics and safety verdicts).

Each log is a JSON array on local disk, read-modify-written as a whole per record.
Concurrent writers may overwrite each other's appends (last writer wins); these files
are an audit aid, not a consistent store.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from starlette.concurrency import run_in_threadpool

from app.support.schemas import QueryMetrics, SafetyCheck, SafetyLogEntry

logger = logging.getLogger("app.query_log")

SAFETY_LOG_QUERY_MAX_CHARS = 500


def _load_records(path: Path) -> list[Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError):
        # Missing or unreadable file starts a fresh log.
        return []
    return data if isinstance(data, list) else []


def _append_record(path: Path, record: dict[str, Any]) -> None:
    """Synchronous read-modify-write (called in a threadpool)."""

    path.parent.mkdir(parents=True, exist_ok=True)
    records = _load_records(path)
    records.append(record)
    path.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")


class JsonArrayFileLog:
    """Append-only JSON array file."""

    def __init__(self, *, path: Path):
        self._path = path

    async def append(self, record: dict[str, Any]) -> None:
        await run_in_threadpool(_append_record, self._path, record)


class MetricsLog(JsonArrayFileLog):
    async def record(self, metrics: QueryMetrics) -> None:
        await self.append(metrics.model_dump(mode="json"))


class SafetyLog(JsonArrayFileLog):
    async def record(self, entry: SafetyLogEntry) -> None:
        await self.append(entry.model_dump(mode="json", exclude_none=True))


class QueryLogSink:
    """Writes the metrics record and the safety record for one finished query."""

    def __init__(self, *, metrics_log: MetricsLog, safety_log: SafetyLog):
        self._metrics_log = metrics_log
        self._safety_log = safety_log

    async def log_query_data(
        self,
        *,
        metrics: QueryMetrics,
        query: str,
        safety: SafetyCheck,
        request_id: str | None = None,
    ) -> None:
        """
        Write both records concurrently. Best-effort: a failing write is logged and
        never prevents the other write or propagates to the caller.
        """

        entry = SafetyLogEntry(
            timestamp=datetime.now(UTC).isoformat(),
            query=query[:SAFETY_LOG_QUERY_MAX_CHARS],
            safety=safety,
            model=metrics.model,
            request_id=request_id,
        )
        results = await asyncio.gather(
            self._metrics_log.record(metrics),
            self._safety_log.record(entry),
            return_exceptions=True,
        )
        for target, result in zip(("metrics", "safety"), results, strict=True):
            if isinstance(result, Exception):
                logger.error(
                    "Failed to write query log",
                    exc_info=result,
                    extra={"request_id": request_id, "log_target": target},
                )


def build_query_log_sink(*, metrics_log_path: str, safety_log_path: str) -> QueryLogSink:
    return QueryLogSink(
        metrics_log=MetricsLog(path=Path(metrics_log_path)),
        safety_log=SafetyLog(path=Path(safety_log_path)),
    )
