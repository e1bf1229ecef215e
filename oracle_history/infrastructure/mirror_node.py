"""
Hedera Mirror Node access for the history pipeline.

Covers topic discovery (configured topics plus whatever the backend reports)
and the concurrent per-topic message fetch. Every failure here degrades to
"fewer messages": nothing in this module raises to the caller for network
or upstream errors.

Retries for transient transport errors use tenacity; the default is a single
attempt per topic.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import httpx
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from oracle_history.config import Settings, get_settings
from oracle_history.domain.models import RawTopicMessage
from oracle_history.utils.logging import get_logger
from oracle_history.utils.profiler import profile_block

log = get_logger(__name__)

MIRROR_HEADERS = {
    "Accept": "application/json",
    "Cache-Control": "no-cache",
}


@dataclass
class TopicDiscovery:
    """Topics to scan and where they came from."""

    topics: List[str]
    backend_topics: List[str] = field(default_factory=list)
    known_topics: List[str] = field(default_factory=list)


@dataclass
class TopicFetchResult:
    """
    Outcome of fetching one topic; ``ok=False`` marks an unavailable topic.
    """

    topic_id: str
    messages: List[RawTopicMessage] = field(default_factory=list)
    ok: bool = True
    error: Optional[str] = None
    duration_ms: int = 0


def _topic_ids_from_backend(body: Any) -> List[str]:
    if not isinstance(body, dict) or body.get("success") is not True:
        return []
    topics = body.get("hcsService", {}).get("topics", {})
    if not isinstance(topics, dict):
        return []
    ids: List[str] = []
    for entry in topics.values():
        topic_id = entry.get("id") if isinstance(entry, dict) else entry
        if isinstance(topic_id, str) and topic_id:
            ids.append(topic_id)
    return ids


async def fetch_backend_topics(
    client: httpx.AsyncClient, settings: Optional[Settings] = None
) -> List[str]:
    """
    Ask the backend which HCS topics it writes to.

    Single attempt with a short timeout; any failure yields an empty list.
    """
    settings = settings or get_settings()
    try:
        response = await client.get(
            settings.hcs_topics_url, timeout=settings.hcs_topics_timeout_seconds
        )
        response.raise_for_status()
        topic_ids = _topic_ids_from_backend(response.json())
    except (httpx.HTTPError, ValueError, AttributeError) as exc:
        log.warning(
            "[TOPIC DISCOVERY] Backend topics unavailable, using known topics only",
            extra={"url": settings.hcs_topics_url, "error": str(exc)},
        )
        return []
    log.debug("[TOPIC DISCOVERY] Backend topics", extra={"backend_topics": topic_ids})
    return topic_ids


def merge_topics(backend_topics: Iterable[str], known_topics: Iterable[str]) -> List[str]:
    """Ordered union: backend topics first, then known ones, without duplicates."""
    return list(dict.fromkeys([*backend_topics, *known_topics]))


async def discover_topics(
    client: httpx.AsyncClient, settings: Optional[Settings] = None
) -> TopicDiscovery:
    settings = settings or get_settings()
    known = list(settings.known_topics.values())
    backend = await fetch_backend_topics(client, settings)
    return TopicDiscovery(
        topics=merge_topics(backend, known),
        backend_topics=backend,
        known_topics=known,
    )


def _parse_messages(topic_id: str, body: Dict[str, Any]) -> List[RawTopicMessage]:
    """
    Validate the ``messages`` array of a Mirror Node page.

    Raises
    ------
    ValueError
        If ``messages`` is present but not a list; the topic counts as unavailable.
    """
    items = body.get("messages")
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValueError(f"'messages' is {type(items).__name__}, expected a list")

    parsed: List[RawTopicMessage] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            parsed.append(RawTopicMessage.model_validate({"topic_id": topic_id, **item}))
        except ValidationError as exc:
            log.warning(
                "[TOPIC FETCH] Skipping malformed mirror message",
                extra={"topic_id": topic_id, "error": str(exc)},
            )
    return parsed


async def fetch_topic_messages(
    client: httpx.AsyncClient, topic_id: str, settings: Optional[Settings] = None
) -> TopicFetchResult:
    """
    Fetch the most recent messages of one topic, newest first.

    Never raises for network or upstream errors; returns ``ok=False`` instead.
    """
    settings = settings or get_settings()
    url = f"{settings.mirror_node_url.rstrip('/')}/api/v1/topics/{topic_id}/messages"
    params = {"limit": settings.mirror_messages_per_topic, "order": "desc"}

    with profile_block(f"topic:{topic_id}") as stats:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max(1, settings.mirror_fetch_attempts)),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await client.get(
                        url,
                        params=params,
                        headers=MIRROR_HEADERS,
                        timeout=settings.mirror_timeout_seconds,
                    )
                    response.raise_for_status()
                    body = response.json()
            messages = _parse_messages(topic_id, body if isinstance(body, dict) else {})
        except (httpx.HTTPError, ValueError) as exc:
            log.warning(
                f"[TOPIC FETCH] {topic_id} unavailable",
                extra={"topic_id": topic_id, "error": str(exc) or type(exc).__name__},
            )
            return TopicFetchResult(
                topic_id=topic_id, ok=False, error=str(exc) or type(exc).__name__
            )

    log.debug(
        f"[TOPIC FETCH] {topic_id} returned {len(messages)} messages",
        extra={"topic_id": topic_id, "messages": len(messages), "duration_ms": stats.duration_ms},
    )
    return TopicFetchResult(topic_id=topic_id, messages=messages, duration_ms=stats.duration_ms)


async def fetch_all_topics(
    client: httpx.AsyncClient,
    topic_ids: Iterable[str],
    settings: Optional[Settings] = None,
) -> List[TopicFetchResult]:
    """
    Fetch every topic concurrently, at most ``mirror_max_concurrency`` at a time.

    Results keep the order of ``topic_ids``.
    """
    settings = settings or get_settings()
    sem = asyncio.Semaphore(max(1, settings.mirror_max_concurrency))

    async def _bounded_fetch(topic_id: str) -> TopicFetchResult:
        async with sem:
            return await fetch_topic_messages(client, topic_id, settings)

    return list(await asyncio.gather(*(_bounded_fetch(t) for t in topic_ids)))


__all__ = [
    "MIRROR_HEADERS",
    "TopicDiscovery",
    "TopicFetchResult",
    "discover_topics",
    "fetch_all_topics",
    "fetch_backend_topics",
    "fetch_topic_messages",
    "merge_topics",
]
