"""
Pytest configuration for the Oracle Query History service.

Provides fixtures for:
- Settings pointing at fake hosts (no real network is ever used)
- Building Mirror Node messages from plain payloads
- A fake upstream (Mirror Node, backend topics, Oracle Manager) served
  through ``httpx.MockTransport``
"""

from __future__ import annotations

import base64
import json
from itertools import count
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import httpx
import pytest

from oracle_history.config import Settings
from oracle_history.domain.models import RawTopicMessage
from oracle_history.infrastructure.http_factory import build_async_client

QUERY_TOPIC = "0.0.1001"
OPERATION_TOPIC = "0.0.1002"
DIA_TOPIC = "0.0.1003"
WEATHER_TOPIC = "0.0.1004"

MIRROR_URL = "http://mirror.test"
BACKEND_TOPICS_URL = "http://backend.test/api/hcs/topics"
ORACLE_MANAGER_URL = "http://manager.test"

BASE_CONSENSUS_TIMESTAMP = "1736337600.000000001"


def encode_payload(payload: Any) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


@pytest.fixture
def test_settings() -> Settings:
    """
    Settings fixture with fake hosts and a small, explicit topic table.
    """
    return Settings(
        log_level="DEBUG",
        mirror_node_url=MIRROR_URL,
        hcs_topics_url=BACKEND_TOPICS_URL,
        oracle_manager_url=ORACLE_MANAGER_URL,
        known_topics={"oracle_queries": QUERY_TOPIC, "compute_operations": OPERATION_TOPIC},
        dia_topic_id=DIA_TOPIC,
        topic_providers={WEATHER_TOPIC: "weather"},
        mirror_fetch_attempts=1,
    )


@pytest.fixture
def make_message() -> Callable[..., RawTopicMessage]:
    """
    Factory for ``RawTopicMessage`` built from a payload (or a raw body).
    """

    def _make(
        payload: Any = None,
        *,
        topic_id: str = QUERY_TOPIC,
        sequence: int = 1,
        consensus_timestamp: str = BASE_CONSENSUS_TIMESTAMP,
        body: Optional[str] = None,
        chunk_info: Optional[Dict[str, Any]] = None,
    ) -> RawTopicMessage:
        return RawTopicMessage.model_validate(
            {
                "consensus_timestamp": consensus_timestamp,
                "message": body if body is not None else encode_payload(payload),
                "payer_account_id": "0.0.123",
                "sequence_number": sequence,
                "topic_id": topic_id,
                "chunk_info": chunk_info,
            }
        )

    return _make


class FakeUpstream:
    """
    Canned responses for every host the service talks to.

    ``backend_topics=None`` makes the backend topics endpoint fail; topics in
    ``failing_topics`` answer 500 and topics in ``unreachable_topics`` raise a
    connection error.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.topic_messages: Dict[str, List[Dict[str, Any]]] = {}
        self.backend_topics: Optional[List[str]] = None
        self.failing_topics: Set[str] = set()
        self.unreachable_topics: Set[str] = set()
        self.manager_routes: Dict[Tuple[str, str], Any] = {}
        self.requests: List[httpx.Request] = []
        self._sequence = count(1)

    def add_message(
        self,
        topic_id: str,
        payload: Any,
        consensus_timestamp: Optional[str] = None,
    ) -> Dict[str, Any]:
        sequence = next(self._sequence)
        entry = {
            "consensus_timestamp": consensus_timestamp or f"1736337600.{sequence:09d}",
            "message": encode_payload(payload),
            "payer_account_id": "0.0.123",
            "sequence_number": sequence,
            "topic_id": topic_id,
        }
        self.topic_messages.setdefault(topic_id, []).append(entry)
        return entry

    def on_manager(self, method: str, path: str, response: Any) -> None:
        """
        Register an Oracle Manager response: a ``(status, body)`` tuple or a
        callable taking the request and returning an ``httpx.Response``.
        """
        self.manager_routes[(method, path)] = response

    def requests_to(self, host: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host

        if host == httpx.URL(self.settings.hcs_topics_url).host:
            if self.backend_topics is None:
                return httpx.Response(503, json={"success": False})
            topics = {f"topic_{i}": {"id": t} for i, t in enumerate(self.backend_topics)}
            return httpx.Response(200, json={"success": True, "hcsService": {"topics": topics}})

        if host == httpx.URL(self.settings.mirror_node_url).host:
            topic_id = request.url.path.split("/")[4]
            if topic_id in self.unreachable_topics:
                raise httpx.ConnectError("mirror unreachable", request=request)
            if topic_id in self.failing_topics:
                return httpx.Response(500, json={"_status": {"messages": [{"message": "boom"}]}})
            return httpx.Response(
                200, json={"messages": self.topic_messages.get(topic_id, []), "links": {"next": None}}
            )

        if host == httpx.URL(self.settings.oracle_manager_url).host:
            route = self.manager_routes.get((request.method, request.url.path))
            if route is None:
                return httpx.Response(404, json={"success": False, "error": "Not found"})
            if callable(route):
                return route(request)
            status, body = route
            return httpx.Response(status, json=body)

        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return build_async_client(self.settings, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def upstream(test_settings: Settings) -> FakeUpstream:
    return FakeUpstream(test_settings)
