"""
Domain models for the Oracle Query History service.

Defines the Mirror Node message schema, the classified payload variants
produced by the decoder, and the history record served to the dashboard.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

ExecutionTimeSource = Literal["measured", "estimated", "none"]
ConfidenceSource = Literal["reported", "default"]


class TransactionId(BaseModel):
    account_id: str
    transaction_valid_start: str

    model_config = {"frozen": True, "extra": "ignore"}


class ChunkInfo(BaseModel):
    initial_transaction_id: Optional[TransactionId] = None

    model_config = {"frozen": True, "extra": "ignore"}


class RawTopicMessage(BaseModel):
    """
    A single HCS topic message as returned by the Mirror Node REST API.
    """

    consensus_timestamp: str = Field(..., description="Seconds.nanos consensus time.")
    message: str = Field(..., description="Base64-encoded message body.")
    payer_account_id: str = Field("", description="Account that paid for submission.")
    sequence_number: int = Field(..., description="Per-topic sequence number.")
    topic_id: str = Field(..., description="Topic the message was submitted to.")
    chunk_info: Optional[ChunkInfo] = None

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }


@dataclass(frozen=True)
class OracleQueryMessage:
    key: str
    payload: Dict[str, Any]
    source: RawTopicMessage
    kind: Literal["query"] = "query"


@dataclass(frozen=True)
class ComputeOperationMessage:
    key: str
    payload: Dict[str, Any]
    source: RawTopicMessage
    kind: Literal["operation"] = "operation"


@dataclass(frozen=True)
class DirectOracleMessage:
    payload: Dict[str, Any]
    source: RawTopicMessage
    kind: Literal["direct"] = "direct"


@dataclass(frozen=True)
class UnrecognizedMessage:
    """Decoded JSON that matched none of the known shapes; dropped by the aggregator."""

    payload: Any
    source: RawTopicMessage
    kind: Literal["unrecognized"] = "unrecognized"


ClassifiedMessage = Union[
    OracleQueryMessage, ComputeOperationMessage, DirectOracleMessage, UnrecognizedMessage
]


class ParsedQueryHistory(BaseModel):
    """
    One row of oracle query history, as served by ``GET /api/query-history``.

    ``execution_time`` and ``confidence`` are not always measurements; the
    ``*_source`` fields say where each value came from.
    """

    id: str
    query: str
    provider: str
    result: str
    timestamp: str = Field(..., description="ISO-8601, millisecond precision, UTC.")
    blockchain_hash: str
    blockchain_link: str
    consensus_timestamp: str
    sequence_number: int
    topic_id: str
    execution_time: int = Field(0, description="Milliseconds.")
    execution_time_source: ExecutionTimeSource = "none"
    success: bool = False
    confidence: float = 95.0
    confidence_source: ConfidenceSource = "default"
    sources: List[str] = Field(default_factory=list)
    ai_response: Optional[str] = None
    model: Optional[str] = None
    cost: Optional[float] = None
    consensus_method: Optional[str] = None
    raw_result: Optional[Dict[str, Any]] = None

    model_config = {
        "frozen": True,
        "protected_namespaces": (),
    }


class HistoryMeta(BaseModel):
    total: int
    limit: int
    offset: int
    source: str = "hedera-blockchain-universal-topics"
    topics_scanned: List[str] = Field(default_factory=list)
    topics_count: int = 0
    backend_topics: int = 0
    known_topics: int = 0
    topics_failed: List[str] = Field(default_factory=list)


class QueryHistoryPage(BaseModel):
    data: List[ParsedQueryHistory]
    meta: HistoryMeta


__all__ = [
    "ChunkInfo",
    "ClassifiedMessage",
    "ComputeOperationMessage",
    "ConfidenceSource",
    "DirectOracleMessage",
    "ExecutionTimeSource",
    "HistoryMeta",
    "OracleQueryMessage",
    "ParsedQueryHistory",
    "QueryHistoryPage",
    "RawTopicMessage",
    "TransactionId",
    "UnrecognizedMessage",
]
