"""
History package: decoding, normalization heuristics and reconciliation.

These modules are pure (no I/O) and operate on already-fetched Mirror Node
messages; fetching lives in ``oracle_history.infrastructure``.
"""

from oracle_history.history.decoding import classify_message, classify_payload, decode_payload
from oracle_history.history.embedded_json import extract_embedded_json, find_balanced_object
from oracle_history.history.heuristics import (
    ProviderRules,
    detect_provider,
    extract_confidence,
    extract_execution_time,
    extract_result_from_message,
    normalize_timestamp,
)
from oracle_history.history.reconcile import reconcile, truncate

__all__ = [
    "ProviderRules",
    "classify_message",
    "classify_payload",
    "decode_payload",
    "detect_provider",
    "extract_confidence",
    "extract_embedded_json",
    "extract_execution_time",
    "extract_result_from_message",
    "find_balanced_object",
    "normalize_timestamp",
    "reconcile",
    "truncate",
]
