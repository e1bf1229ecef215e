"""
HTTP client for the Oracle Manager backend.

The dashboard never talks to the backend directly; the proxy routes in
``oracle_history.api.oracle_proxy`` forward through this client and relay
the upstream status and JSON body unchanged.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import httpx

from oracle_history.config import Settings, get_settings
from oracle_history.utils.logging import get_logger

log = get_logger(__name__)

CHATBOT_PROVIDER: Dict[str, Any] = {
    "id": "chatbot",
    "name": "Chatbot",
    "icon": "🤖",
    "description": "AI-powered chatbot with intelligent responses and general knowledge",
    "category": "Dynamic",
    "specialties": ["AI chat", "Natural language", "General knowledge", "Q&A assistance"],
    "latency": "1200ms",
    "reliability": "87%",
}


@dataclass
class UpstreamResponse:
    status_code: int
    body: Any


def replace_web_search_provider(body: Any) -> Any:
    """
    Swap the "Web Search" entry of the Dynamic provider category for the Chatbot.

    Other fields of the replaced entry are kept unless the Chatbot overrides them.
    """
    if not isinstance(body, dict) or not body.get("success"):
        return body
    data = body.get("data")
    categories = data.get("categories") if isinstance(data, dict) else None
    dynamic = categories.get("Dynamic") if isinstance(categories, dict) else None
    if not isinstance(dynamic, list):
        return body
    for index, provider in enumerate(dynamic):
        if isinstance(provider, dict) and (
            provider.get("id") == "web-scraping" or provider.get("name") == "Web Search"
        ):
            dynamic[index] = {**provider, **CHATBOT_PROVIDER}
            break
    return body


class OracleManagerClient:
    """
    Thin async wrapper over the Oracle Manager REST API.

    Network errors and non-JSON bodies propagate; callers turn them into 500s.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self._client = client
        self.base_url = settings.oracle_manager_url.rstrip("/")
        self.timeout = settings.oracle_manager_timeout_seconds

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> UpstreamResponse:
        response = await self._client.request(
            method,
            f"{self.base_url}{path}",
            params=params,
            json=json,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        log.debug(
            f"[ORACLE MANAGER] {method} {path} -> {response.status_code}",
            extra={"status_code": response.status_code},
        )
        return UpstreamResponse(status_code=response.status_code, body=response.json())

    async def query(self, params: Mapping[str, str]) -> UpstreamResponse:
        """Oracle API controller query (recorded in the backend database)."""
        return await self._request("GET", "/api/oracle/query", params=params)

    async def submit_query(self, body: Dict[str, Any]) -> UpstreamResponse:
        """Consensus query through the Oracle Manager."""
        return await self._request("POST", "/api/oracle-manager/query", json=body)

    async def stats(self) -> UpstreamResponse:
        return await self._request("GET", "/api/oracle-manager/stats")

    async def providers(self) -> UpstreamResponse:
        return await self._request("GET", "/api/oracle-manager/providers")

    async def submit_batch(
        self, queries: List[Dict[str, Any]], concurrency: int = 5
    ) -> List[Dict[str, Any]]:
        """
        Submit every query concurrently; a failed item becomes ``{success: False, error}``.
        """
        sem = asyncio.Semaphore(max(1, concurrency))

        async def _bounded_submit(item: Dict[str, Any]) -> Dict[str, Any]:
            body = {"query": item.get("query")}
            for key in ("sources", "method", "timeout"):
                if item.get(key):
                    body[key] = item[key]
            async with sem:
                return (await self.submit_query(body)).body

        outcomes = await asyncio.gather(
            *(_bounded_submit(q) for q in queries), return_exceptions=True
        )

        results: List[Dict[str, Any]] = []
        for item, outcome in zip(queries, outcomes):
            if isinstance(outcome, Exception):
                reason = str(outcome) or type(outcome).__name__
                log.warning(
                    "[ORACLE MANAGER] Batch item failed",
                    extra={"query": item.get("query"), "error": reason},
                )
                results.append({"success": False, "error": f"Query failed: {reason}"})
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)
        return results


__all__ = [
    "CHATBOT_PROVIDER",
    "OracleManagerClient",
    "UpstreamResponse",
    "replace_web_search_provider",
]
