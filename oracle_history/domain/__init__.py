"""
Domain package for the Oracle Query History service.

Exports the Mirror Node message schema, the classified payload variants and
the history record. Keep this package focused on data definitions.
"""

from oracle_history.domain.models import (
    ClassifiedMessage,
    ComputeOperationMessage,
    DirectOracleMessage,
    HistoryMeta,
    OracleQueryMessage,
    ParsedQueryHistory,
    QueryHistoryPage,
    RawTopicMessage,
    UnrecognizedMessage,
)

__all__ = [
    "ClassifiedMessage",
    "ComputeOperationMessage",
    "DirectOracleMessage",
    "HistoryMeta",
    "OracleQueryMessage",
    "ParsedQueryHistory",
    "QueryHistoryPage",
    "RawTopicMessage",
    "UnrecognizedMessage",
]
