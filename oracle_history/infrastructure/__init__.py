"""
Infrastructure package for the Oracle Query History service.

Centralizes outbound HTTP concerns: the client factory, Mirror Node access
and the Oracle Manager client. Keep this layer focused on I/O, decoupled
from the decoding and reconciliation logic.
"""

from oracle_history.infrastructure.http_factory import build_async_client
from oracle_history.infrastructure.mirror_node import (
    TopicDiscovery,
    TopicFetchResult,
    discover_topics,
    fetch_all_topics,
    fetch_topic_messages,
)
from oracle_history.infrastructure.oracle_manager import OracleManagerClient

__all__ = [
    "OracleManagerClient",
    "TopicDiscovery",
    "TopicFetchResult",
    "build_async_client",
    "discover_topics",
    "fetch_all_topics",
    "fetch_topic_messages",
]
