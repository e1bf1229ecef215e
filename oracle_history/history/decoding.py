"""
Decoding and classification of HCS topic messages.

Mirror Node returns each message body base64-encoded. Oracle publishers write
JSON into it, but with no shared schema, so the decoded object is classified
by field presence into one of the variants in ``oracle_history.domain.models``.
"""

from __future__ import annotations

import base64
import binascii
import json
import math
from numbers import Real
from typing import Any, Dict, Optional

from oracle_history.domain.models import (
    ClassifiedMessage,
    ComputeOperationMessage,
    DirectOracleMessage,
    OracleQueryMessage,
    RawTopicMessage,
    UnrecognizedMessage,
)
from oracle_history.utils.logging import get_logger

log = get_logger(__name__)

ORACLE_QUERY = "ORACLE_QUERY"
COMPUTE_OPERATION = "COMPUTE_OPERATION"


def is_number(value: Any) -> bool:
    """True for ints and floats, but not bools."""
    return isinstance(value, Real) and not isinstance(value, bool)


def _reject_constant(token: str) -> float:
    raise ValueError(f"non-standard JSON constant {token!r}")


def _finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {token}")
    return value


def loads_strict(text: str) -> Any:
    """
    ``json.loads`` that rejects ``NaN``/``Infinity`` and numbers overflowing a float.

    Raises
    ------
    ValueError
        On invalid JSON or a non-finite number.
    """
    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)


def decode_payload(encoded: str) -> Dict[str, Any]:
    """
    Decode a base64 message body into a JSON object.

    Raises
    ------
    ValueError
        If the body is not valid base64, not UTF-8, not strict JSON, or not a JSON object.
    """
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64: {exc}") from exc
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValueError(f"invalid utf-8: {exc}") from exc
    payload = loads_strict(text)
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def is_direct_oracle_payload(payload: Dict[str, Any]) -> bool:
    if payload.get("oracle_used") or payload.get("answer") or payload.get("raw_data"):
        return True
    result = payload.get("result")
    return (
        isinstance(result, dict)
        and is_number(result.get("value"))
        and bool(payload.get("query"))
    )


def classify_payload(payload: Dict[str, Any], source: RawTopicMessage) -> ClassifiedMessage:
    """
    Classify a decoded payload; first match wins.

    Typed messages missing their join key cannot be reconciled and fall into
    the unrecognized arm.
    """
    message_type = payload.get("type")
    if message_type == ORACLE_QUERY:
        key = payload.get("queryId")
        if key:
            return OracleQueryMessage(key=str(key), payload=payload, source=source)
        return UnrecognizedMessage(payload=payload, source=source)
    if message_type == COMPUTE_OPERATION:
        key = payload.get("operationId")
        if key:
            return ComputeOperationMessage(key=str(key), payload=payload, source=source)
        return UnrecognizedMessage(payload=payload, source=source)
    if is_direct_oracle_payload(payload):
        return DirectOracleMessage(payload=payload, source=source)
    return UnrecognizedMessage(payload=payload, source=source)


def classify_message(message: RawTopicMessage) -> Optional[ClassifiedMessage]:
    """
    Decode and classify one Mirror Node message.

    Returns None when the body cannot be decoded; the failure is logged and
    the message contributes nothing to the history.
    """
    try:
        payload = decode_payload(message.message)
    except ValueError as exc:
        log.warning(
            "[DECODE] Skipping undecodable message",
            extra={
                "topic_id": message.topic_id,
                "sequence_number": message.sequence_number,
                "error": str(exc),
            },
        )
        return None
    return classify_payload(payload, message)


__all__ = [
    "COMPUTE_OPERATION",
    "ORACLE_QUERY",
    "classify_message",
    "classify_payload",
    "decode_payload",
    "is_direct_oracle_payload",
    "is_number",
    "loads_strict",
]
