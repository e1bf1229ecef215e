from __future__ import annotations

import base64
import json

import pytest

from oracle_history.domain.models import (
    ComputeOperationMessage,
    DirectOracleMessage,
    OracleQueryMessage,
    UnrecognizedMessage,
)
from oracle_history.history.decoding import classify_message, classify_payload, decode_payload


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def test_decode_payload_is_idempotent() -> None:
    body = _b64(json.dumps({"type": "ORACLE_QUERY", "queryId": "q1", "inputPrompt": "BTC price"}))

    first = decode_payload(body)
    second = decode_payload(body)

    assert first == second == {"type": "ORACLE_QUERY", "queryId": "q1", "inputPrompt": "BTC price"}


@pytest.mark.parametrize(
    "body",
    [
        "not base64!!",
        _b64("plain text, not json"),
        _b64("[1, 2, 3]"),
        base64.b64encode(b"\xff\xfe\x00").decode("ascii"),
    ],
)
def test_decode_payload_rejects_non_object_bodies(body: str) -> None:
    with pytest.raises(ValueError):
        decode_payload(body)


def test_classify_typed_messages_by_join_key(make_message) -> None:
    query = make_message({"type": "ORACLE_QUERY", "queryId": "q1"})
    operation = make_message({"type": "COMPUTE_OPERATION", "operationId": "q1"})

    classified_query = classify_payload(decode_payload(query.message), query)
    classified_op = classify_payload(decode_payload(operation.message), operation)

    assert isinstance(classified_query, OracleQueryMessage)
    assert classified_query.key == "q1"
    assert isinstance(classified_op, ComputeOperationMessage)
    assert classified_op.key == "q1"


def test_typed_message_without_key_is_unrecognized(make_message) -> None:
    message = make_message({"type": "ORACLE_QUERY", "inputPrompt": "BTC price"})

    assert isinstance(classify_message(message), UnrecognizedMessage)


@pytest.mark.parametrize(
    "payload",
    [
        {"answer": "Sunny, 21°C"},
        {"oracle_used": "chainlink", "result": 1.0},
        {"raw_data": {"temperature": 21}},
        {"query": "BTC price", "result": {"value": 45000}},
    ],
)
def test_direct_oracle_shapes(make_message, payload) -> None:
    assert isinstance(classify_message(make_message(payload)), DirectOracleMessage)


def test_value_result_without_query_is_unrecognized(make_message) -> None:
    message = make_message({"result": {"value": 45000}})

    assert isinstance(classify_message(message), UnrecognizedMessage)


def test_undecodable_message_is_dropped(make_message) -> None:
    message = make_message(body="%%%")

    assert classify_message(message) is None


@pytest.mark.parametrize(
    "text",
    [
        '{"answer": "y", "confidence": NaN}',
        '{"answer": "y", "executionTime": Infinity}',
        '{"answer": "y", "executionTime": -Infinity}',
        '{"answer": "y", "executionTime": 1e400}',
    ],
)
def test_non_finite_numbers_are_rejected(make_message, text: str) -> None:
    with pytest.raises(ValueError):
        decode_payload(_b64(text))

    assert classify_message(make_message(body=_b64(text))) is None
