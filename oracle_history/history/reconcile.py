"""
Reconciliation of classified topic messages into history records.

Queries and their compute operations are published as separate messages
(often on separate topics) that share an ID. They are joined here into one
record per query; self-contained direct oracle messages become one record
each. Records are returned newest first.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

from pydantic import ValidationError

from oracle_history.domain.models import (
    ClassifiedMessage,
    ComputeOperationMessage,
    DirectOracleMessage,
    OracleQueryMessage,
    ParsedQueryHistory,
    RawTopicMessage,
    UnrecognizedMessage,
)
from oracle_history.history.decoding import is_number
from oracle_history.history.embedded_json import (
    ORACLE_RESULT_MARKER,
    extract_embedded_json,
    extract_result_number,
)
from oracle_history.history.heuristics import (
    PROCESSING,
    UNKNOWN_PROVIDER,
    ProviderRules,
    as_float,
    detect_provider,
    extract_confidence,
    extract_execution_time,
    extract_result_from_message,
    extract_sources,
    format_locale_number,
    normalize_timestamp,
    scale_confidence,
    stringify,
    timestamp_sort_key,
)
from oracle_history.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_HASHSCAN_URL = "https://hashscan.io/testnet"
TRANSACTION_ID_FIELDS = ("transactionId", "transaction_id", "blockchain_hash")


def blockchain_reference(
    payload: Dict[str, Any], source: RawTopicMessage, hashscan_url: str = DEFAULT_HASHSCAN_URL
) -> Tuple[str, str]:
    """
    Hash and HashScan link for a message.

    Prefers a transaction ID written into the payload, then the Mirror Node
    ``chunk_info`` transaction, then the consensus timestamp.
    """
    reference: Optional[str] = None
    for name in TRANSACTION_ID_FIELDS:
        value = payload.get(name)
        if isinstance(value, str) and value:
            reference = value
            break
    if reference is None and source.chunk_info and source.chunk_info.initial_transaction_id:
        tx = source.chunk_info.initial_transaction_id
        reference = f"{tx.account_id}@{tx.transaction_valid_start}"
    if reference is None:
        reference = source.consensus_timestamp
    link = f"{hashscan_url.rstrip('/')}/transaction/{quote(reference, safe='')}"
    return reference, link


def _text(value: Any, default: str = "") -> str:
    if value is None or value == "":
        return default
    return stringify(value)


def build_direct_record(
    message: DirectOracleMessage,
    rules: ProviderRules,
    hashscan_url: str = DEFAULT_HASHSCAN_URL,
) -> ParsedQueryHistory:
    payload = message.payload
    source = message.source
    provider = detect_provider(payload, source.topic_id, rules)
    execution_time, execution_source = extract_execution_time(payload)
    confidence, confidence_source = extract_confidence(payload)
    blockchain_hash, blockchain_link = blockchain_reference(payload, source, hashscan_url)
    result = payload.get("result")

    if isinstance(payload.get("success"), bool):
        success = payload["success"]
    else:
        success = payload.get("answer") is not None or result is not None

    return ParsedQueryHistory(
        id=_text(payload.get("query_id") or payload.get("queryId"), source.consensus_timestamp),
        query=_text(payload.get("query") or payload.get("question"), "Oracle query"),
        provider=provider,
        result=extract_result_from_message(payload),
        timestamp=normalize_timestamp(
            payload.get("timestamp") if payload.get("timestamp") is not None
            else source.consensus_timestamp
        ),
        blockchain_hash=blockchain_hash,
        blockchain_link=blockchain_link,
        consensus_timestamp=source.consensus_timestamp,
        sequence_number=source.sequence_number,
        topic_id=source.topic_id,
        execution_time=execution_time,
        execution_time_source=execution_source,
        success=success,
        confidence=confidence,
        confidence_source=confidence_source,
        sources=extract_sources(payload, provider),
        model=payload.get("model") if isinstance(payload.get("model"), str) else None,
        cost=as_float(payload.get("cost")),
        consensus_method=_text(
            payload.get("consensus_method")
            or (result.get("consensus_method") if isinstance(result, dict) else None)
        ) or None,
        raw_result=result if isinstance(result, dict) else None,
    )


def _format_embedded_result(details: Dict[str, Any]) -> str:
    value = details.get("result")
    if is_number(value):
        return f"${format_locale_number(value)}"
    if details.get("answer"):
        return _text(details["answer"])
    if details.get("data") is not None:
        return _text(details["data"])
    return "Result available"


def build_combined_record(
    query: OracleQueryMessage,
    operation: Optional[ComputeOperationMessage],
    rules: ProviderRules,
    hashscan_url: str = DEFAULT_HASHSCAN_URL,
) -> ParsedQueryHistory:
    """
    Join a query with its compute operation (if one was published).

    When the operation's ``aiResponse`` embeds an oracle result object, that
    object overrides result, confidence, sources and consensus method, and
    supplies the provider when neither message named one.
    """
    q = query.payload
    op = operation.payload if operation else {}

    provider = detect_provider(q, query.source.topic_id, rules)
    if provider == UNKNOWN_PROVIDER and operation:
        provider = detect_provider(op, operation.source.topic_id, rules)

    if operation:
        result = extract_result_from_message(op)
        execution_time, execution_source = extract_execution_time(op)
        confidence, confidence_source = extract_confidence(op)
    else:
        result = PROCESSING
        execution_time, execution_source = 0, "none"
        confidence, confidence_source = extract_confidence(q)
    explicit_success = op.get("success") if isinstance(op.get("success"), bool) else None
    sources = extract_sources(op, provider)
    consensus_method: Optional[str] = None
    raw_result: Optional[Dict[str, Any]] = None

    ai_response = op.get("aiResponse") if isinstance(op.get("aiResponse"), str) else None
    if ai_response and ORACLE_RESULT_MARKER in ai_response:
        try:
            details = extract_embedded_json(ai_response)
        except ValueError as exc:
            log.warning(
                "[RECONCILE] Embedded oracle result unreadable",
                extra={"query_id": query.key, "error": str(exc)},
            )
            scraped = extract_result_number(ai_response)
            if scraped is not None:
                result = f"${format_locale_number(scraped)}"
        else:
            if details is not None:
                result = _format_embedded_result(details)
                consensus_method = _text(details.get("consensus_method"), "median")
                embedded_confidence = as_float(details.get("confidence"))
                if embedded_confidence is not None:
                    confidence = scale_confidence(embedded_confidence)
                    confidence_source = "reported"
                if isinstance(details.get("sources"), list) and details["sources"]:
                    sources = [str(s) for s in details["sources"]]
                if provider == UNKNOWN_PROVIDER:
                    provider = detect_provider({"result": details}, query.source.topic_id, rules)
                raw_result = details

    if explicit_success is not None:
        success = explicit_success
    else:
        success = result != PROCESSING

    blockchain_hash, blockchain_link = blockchain_reference(q, query.source, hashscan_url)
    model = q.get("model") or op.get("model")
    raw_timestamp = q.get("timestamp") or op.get("timestamp") or query.source.consensus_timestamp

    return ParsedQueryHistory(
        id=query.key,
        query=_text(q.get("inputPrompt") or q.get("query")),
        provider=provider,
        result=result,
        timestamp=normalize_timestamp(raw_timestamp),
        blockchain_hash=blockchain_hash,
        blockchain_link=blockchain_link,
        consensus_timestamp=query.source.consensus_timestamp,
        sequence_number=query.source.sequence_number,
        topic_id=query.source.topic_id,
        execution_time=execution_time,
        execution_time_source=execution_source,
        success=success,
        confidence=confidence,
        confidence_source=confidence_source,
        sources=sources,
        ai_response=ai_response,
        model=model if isinstance(model, str) else None,
        cost=as_float(op.get("cost") if op.get("cost") is not None else q.get("cost")),
        consensus_method=consensus_method,
        raw_result=raw_result,
    )


def reconcile(
    messages: Iterable[ClassifiedMessage],
    rules: Optional[ProviderRules] = None,
    hashscan_url: str = DEFAULT_HASHSCAN_URL,
) -> List[ParsedQueryHistory]:
    """
    Build history records from classified messages, newest first.

    Query and operation IDs are last-write-wins; direct messages are kept
    as-is, one record each.
    """
    rules = rules or ProviderRules.from_settings()
    queries: Dict[str, OracleQueryMessage] = {}
    operations: Dict[str, ComputeOperationMessage] = {}
    direct: List[DirectOracleMessage] = []

    for message in messages:
        if isinstance(message, OracleQueryMessage):
            queries[message.key] = message
        elif isinstance(message, ComputeOperationMessage):
            operations[message.key] = message
        elif isinstance(message, DirectOracleMessage):
            direct.append(message)
        elif isinstance(message, UnrecognizedMessage):
            log.debug(
                "[RECONCILE] Ignoring unrecognized message",
                extra={
                    "topic_id": message.source.topic_id,
                    "sequence_number": message.source.sequence_number,
                },
            )

    records: List[ParsedQueryHistory] = []
    for key, query in queries.items():
        try:
            records.append(build_combined_record(query, operations.get(key), rules, hashscan_url))
        except (ValidationError, TypeError, ValueError, OverflowError) as exc:
            log.warning(
                "[RECONCILE] Dropping query record", extra={"query_id": key, "error": str(exc)}
            )
    for message in direct:
        try:
            records.append(build_direct_record(message, rules, hashscan_url))
        except (ValidationError, TypeError, ValueError, OverflowError) as exc:
            log.warning(
                "[RECONCILE] Dropping direct record",
                extra={
                    "topic_id": message.source.topic_id,
                    "sequence_number": message.source.sequence_number,
                    "error": str(exc),
                },
            )

    records.sort(key=lambda record: timestamp_sort_key(record.timestamp), reverse=True)
    log.debug(
        "[RECONCILE] Built history records",
        extra={
            "queries": len(queries),
            "operations": len(operations),
            "direct": len(direct),
            "records": len(records),
        },
    )
    return records


def truncate(records: List[ParsedQueryHistory], limit: int) -> List[ParsedQueryHistory]:
    return records[: max(0, limit)]


__all__ = [
    "blockchain_reference",
    "build_combined_record",
    "build_direct_record",
    "reconcile",
    "truncate",
]
