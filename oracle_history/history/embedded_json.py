"""
Extraction of a JSON object embedded in free text.

Compute operations report their outcome as prose, e.g.
``'Oracle query result: {"result": 45000, "sources": ["coingecko"]}'``.
``extract_embedded_json`` finds the first balanced object after the marker
and parses it. Braces inside JSON strings (and escaped quotes) are ignored
while matching.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

from oracle_history.history.decoding import loads_strict

ORACLE_RESULT_MARKER = "Oracle query result:"

_RESULT_NUMBER_RE = re.compile(r'result"?\s*[:=]\s*(\d+\.?\d*)', re.IGNORECASE)


def find_balanced_object(text: str, start: int = 0) -> Optional[str]:
    """
    Return the first ``{...}`` span at or after ``start`` whose braces balance.

    Returns None when there is no opening brace or it is never closed.
    """
    begin = text.find("{", start)
    if begin == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(begin, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[begin : index + 1]
    return None


def extract_embedded_json(text: str, marker: str = ORACLE_RESULT_MARKER) -> Optional[Dict[str, Any]]:
    """
    Parse the JSON object that follows ``marker`` in ``text``.

    Returns None if the marker or a balanced object is absent.

    Raises
    ------
    ValueError
        If a balanced span is found but is not a valid JSON object.
    """
    marker_at = text.find(marker)
    if marker_at == -1:
        return None
    span = find_balanced_object(text, marker_at + len(marker))
    if span is None:
        return None
    parsed = loads_strict(span)
    if not isinstance(parsed, dict):
        raise ValueError("embedded JSON is not an object")
    return parsed


def extract_result_number(text: str) -> Optional[float]:
    """Last-resort scrape of a ``result: <number>`` fragment."""
    match = _RESULT_NUMBER_RE.search(text)
    if not match:
        return None
    return float(match.group(1))


__all__ = [
    "ORACLE_RESULT_MARKER",
    "extract_embedded_json",
    "extract_result_number",
    "find_balanced_object",
]
