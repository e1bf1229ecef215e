"""
End-to-end tests for ``GET /api/query-history``.

The FastAPI app runs in-process through ``TestClient``; every outbound call
(backend topics, Mirror Node) is answered by the fake upstream.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from oracle_history.api.app import create_app
from oracle_history.api.deps import get_app_settings, get_http_client

QUERY_TOPIC = "0.0.1001"
OPERATION_TOPIC = "0.0.1002"

pytestmark = pytest.mark.integration


@pytest.fixture
def api(upstream):
    app = create_app(upstream.settings)

    async def _client():
        async with upstream.client() as client:
            yield client

    app.dependency_overrides[get_app_settings] = lambda: upstream.settings
    app.dependency_overrides[get_http_client] = _client
    with TestClient(app) as client:
        yield client


class TestQueryHistoryEndpoint:
    def test_returns_reconciled_records(self, api, upstream):
        upstream.add_message(
            QUERY_TOPIC,
            {"type": "ORACLE_QUERY", "queryId": "q1", "inputPrompt": "ETH price", "timestamp": 1736337600000},
        )
        upstream.add_message(
            OPERATION_TOPIC,
            {
                "type": "COMPUTE_OPERATION",
                "operationId": "q1",
                "executionTime": 95,
                "aiResponse": 'Oracle query result: {"result": 3300.5, "sources": ["dia"]}',
            },
        )

        response = api.get("/api/query-history")

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        body = response.json()
        assert body["success"] is True
        record = body["data"][0]
        assert record["id"] == "q1"
        assert record["result"] == "$3,300.5"
        assert record["provider"] == "dia"
        assert record["sources"] == ["dia"]
        assert record["execution_time"] == 95
        assert record["timestamp"] == "2025-01-08T12:00:00.000Z"
        assert body["meta"]["source"] == "hedera-blockchain-universal-topics"
        assert body["meta"]["topics_count"] == 2

    def test_limit_bounds_data(self, api, upstream):
        for i in range(4):
            upstream.add_message(QUERY_TOPIC, {"query": f"q{i}", "answer": "ok", "timestamp": 1736337600 + i})

        body = api.get("/api/query-history", params={"limit": "3", "offset": "1"}).json()

        assert len(body["data"]) == 3
        assert body["meta"]["total"] == 4
        assert body["meta"]["limit"] == 3
        assert body["meta"]["offset"] == 1

    def test_all_topics_down_still_returns_200(self, api, upstream):
        upstream.failing_topics = {QUERY_TOPIC, OPERATION_TOPIC}

        response = api.get("/api/query-history")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == []
        assert sorted(body["meta"]["topics_failed"]) == [QUERY_TOPIC, OPERATION_TOPIC]

    def test_non_finite_payloads_are_dropped_and_the_rest_served(self, api, upstream):
        upstream.add_message(QUERY_TOPIC, {"query": "kept", "answer": "ok"})
        upstream.add_message(
            QUERY_TOPIC, {"answer": "y", "oracle_used": "dia", "executionTime": float("inf")}
        )
        upstream.add_message(QUERY_TOPIC, {"answer": "y", "oracle_used": "dia", "confidence": float("nan")})
        upstream.add_message(QUERY_TOPIC, {"query": "huge", "answer": "ok", "executionTime": 10**400})

        response = api.get("/api/query-history")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [record["query"] for record in body["data"]] == ["kept"]

    def test_malformed_topic_page_only_fails_that_topic(self, api, upstream):
        upstream.add_message(QUERY_TOPIC, {"query": "kept", "answer": "ok"})
        upstream.topic_messages[OPERATION_TOPIC] = 5

        response = api.get("/api/query-history")

        assert response.status_code == 200
        body = response.json()
        assert [record["query"] for record in body["data"]] == ["kept"]
        assert body["meta"]["topics_failed"] == [OPERATION_TOPIC]

    def test_non_integer_limit_is_a_500(self, api):
        response = api.get("/api/query-history", params={"limit": "abc"})

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Failed to fetch query history"
        assert "abc" in body["details"]


def test_health_route(api):
    body = api.get("/api/health").json()
    assert body["status"] == "healthy"
    assert body["service"] == "oracle_history"
