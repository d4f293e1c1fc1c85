from __future__ import annotations

from fastapi import Depends

from app.core.llm.deps import get_llm_client
from app.core.settings import get_settings
from app.support.query_log import QueryLogSink, build_query_log_sink
from app.support.service import LLMClient, SupportQueryService


def get_query_log_sink() -> QueryLogSink:
    settings = get_settings()
    return build_query_log_sink(
        metrics_log_path=settings.metrics_log_path,
        safety_log_path=settings.safety_log_path,
    )


def get_support_query_service(
    llm_client: LLMClient = Depends(get_llm_client),
    query_log: QueryLogSink = Depends(get_query_log_sink),
) -> SupportQueryService:
    return SupportQueryService(llm_client=llm_client, query_log=query_log)
