"""
Oracle Query History - HCS-backed history and proxy service for the Oracle dashboard.

This package rebuilds the dashboard's oracle query history from Hedera
Consensus Service topics and forwards dashboard requests to the Oracle
Manager backend:

- Topic discovery (configured topics plus backend-reported ones)
- Bounded concurrent Mirror Node fetches
- Heuristic decoding and provider/result normalization
- Query/operation reconciliation, newest first
- Oracle Manager proxy routes (query, batch, price, weather, status)
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from oracle_history.aggregator import build_query_history
from oracle_history.config import Settings, get_settings
from oracle_history.domain.models import HistoryMeta, ParsedQueryHistory, QueryHistoryPage
from oracle_history.history.heuristics import ProviderRules
from oracle_history.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # History
    "build_query_history",
    "HistoryMeta",
    "ParsedQueryHistory",
    "ProviderRules",
    "QueryHistoryPage",
    # Logging
    "configure_logging",
    "get_logger",
]
