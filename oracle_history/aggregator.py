"""
Query history aggregator: discovers topics, fetches them, and builds the page.

Usage (example from the API or CLI):
    import httpx
    from oracle_history.aggregator import build_query_history

    async with httpx.AsyncClient() as client:
        page = await build_query_history(client, limit=20)
    print(page.meta.topics_count, len(page.data))

Everything is request-scoped: each call re-fetches every topic and re-derives
every record.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import httpx

from oracle_history.config import Settings, get_settings
from oracle_history.domain.models import ClassifiedMessage, HistoryMeta, QueryHistoryPage
from oracle_history.history.decoding import classify_message
from oracle_history.history.heuristics import ProviderRules
from oracle_history.history.reconcile import reconcile, truncate
from oracle_history.infrastructure.mirror_node import (
    TopicFetchResult,
    discover_topics,
    fetch_all_topics,
)
from oracle_history.utils.logging import get_logger
from oracle_history.utils.profiler import profile_block

log = get_logger(__name__)

HISTORY_SOURCE = "hedera-blockchain-universal-topics"


def classify_results(results: Iterable[TopicFetchResult]) -> List[ClassifiedMessage]:
    """Decode every fetched message, dropping the ones that fail to decode."""
    classified: List[ClassifiedMessage] = []
    for result in results:
        for message in result.messages:
            decoded = classify_message(message)
            if decoded is not None:
                classified.append(decoded)
    return classified


async def build_query_history(
    client: httpx.AsyncClient,
    limit: Optional[int] = None,
    offset: int = 0,
    settings: Optional[Settings] = None,
    rules: Optional[ProviderRules] = None,
) -> QueryHistoryPage:
    """
    Run the full pipeline and return the newest ``limit`` records.

    Parameters
    ----------
    client : httpx.AsyncClient
        Client used for the backend topic lookup and every Mirror Node call.
    limit : int | None
        Maximum records returned. Defaults to settings.history_default_limit.
    offset : int
        Echoed in the page metadata.
    settings : Settings | None
        Overrides the cached settings (tests, CLI).
    rules : ProviderRules | None
        Provider tables; built from settings when omitted.

    Returns
    -------
    QueryHistoryPage
        Records sorted newest first plus scan metadata.
    """
    settings = settings or get_settings()
    rules = rules or ProviderRules.from_settings(settings)
    effective_limit = settings.history_default_limit if limit is None else max(0, limit)

    log.info("[HISTORY START]", extra={"limit": effective_limit, "offset": offset})

    with profile_block("history") as stats:
        discovery = await discover_topics(client, settings)
        log.info(
            f"[TOPIC DISCOVERY] Scanning {len(discovery.topics)} topics",
            extra={
                "topics_count": len(discovery.topics),
                "backend_topics": len(discovery.backend_topics),
                "known_topics": len(discovery.known_topics),
            },
        )

        results = await fetch_all_topics(client, discovery.topics, settings)
        failed = [r.topic_id for r in results if not r.ok]
        if failed:
            log.warning(
                f"[TOPIC FETCH] {len(failed)}/{len(results)} topics unavailable",
                extra={"topics_failed": failed},
            )

        classified = classify_results(results)
        records = reconcile(classified, rules, settings.hashscan_url)
        page_records = truncate(records, effective_limit)

    log.info(
        f"[HISTORY COMPLETE] {len(page_records)} of {len(records)} records",
        extra={
            "records": len(records),
            "returned": len(page_records),
            "messages": sum(len(r.messages) for r in results),
            "duration_ms": stats.duration_ms,
        },
    )

    return QueryHistoryPage(
        data=page_records,
        meta=HistoryMeta(
            total=len(records),
            limit=effective_limit,
            offset=offset,
            source=HISTORY_SOURCE,
            topics_scanned=discovery.topics,
            topics_count=len(discovery.topics),
            backend_topics=len(discovery.backend_topics),
            known_topics=len(discovery.known_topics),
            topics_failed=failed,
        ),
    )


__all__ = ["HISTORY_SOURCE", "build_query_history", "classify_results"]
