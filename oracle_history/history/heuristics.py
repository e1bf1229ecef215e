"""
Normalization heuristics for decoded oracle payloads.

Publishers disagree on field names, so every value shown in the history is
derived from a prioritized chain of checks: explicit fields first, then
content patterns, then topic-based fallbacks. ``"unknown"`` and
``"Processing..."`` are ordinary outputs of these chains, not errors.
"""

from __future__ import annotations

import json
import random
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from oracle_history.config import Settings, get_settings
from oracle_history.domain.models import ConfidenceSource, ExecutionTimeSource
from oracle_history.history.decoding import is_number

UNKNOWN_PROVIDER = "unknown"
PROCESSING = "Processing..."
DEFAULT_CONFIDENCE = 95.0

# Unix values below this are seconds, above are milliseconds (~year 2096).
SECONDS_THRESHOLD = 4_000_000_000

EXECUTION_TIME_FIELDS = (
    "executionTime",
    "execution_time",
    "processingTime",
    "responseTime",
    "latency_ms",
)
ESTIMATED_EXECUTION_RANGE_MS = (500, 2000)

TEMPERATURE_FIELDS = ("temperature", "temp", "temperature_c", "temperature_celsius")
WEATHER_EMOJI = ("🌤", "☀", "⛅", "🌥", "☁", "🌦", "🌧", "⛈", "🌩", "🌨", "❄", "🌡")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NUMERIC_RE = re.compile(r"^\s*-?\d+(\.\d+)?\s*$")


@dataclass(frozen=True)
class ProviderRules:
    """
    Topic and provider tables consulted by ``detect_provider``.

    Built from settings so the tables can change without a code release.
    """

    priority: Tuple[str, ...] = ("coingecko", "dia", "chainlink", "weather")
    aliases: Mapping[str, str] = field(
        default_factory=lambda: {"llama-3.3-70b-instruct": "chatbot"}
    )
    dia_topic_id: Optional[str] = None
    topic_providers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ProviderRules":
        settings = settings or get_settings()
        return cls(
            priority=tuple(settings.provider_priority),
            aliases=dict(settings.provider_aliases),
            dia_topic_id=settings.dia_topic_id,
            topic_providers=dict(settings.topic_providers),
        )


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_float(value: Any) -> Optional[float]:
    if is_number(value):
        return float(value)
    if isinstance(value, str) and _NUMERIC_RE.match(value):
        return float(value)
    return None


def stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


# === Number formatting ===


def format_usd(value: float) -> str:
    """Format as US dollars with two decimals, e.g. ``$45,000.00``."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_locale_number(value: float) -> str:
    """Group thousands and keep at most three fraction digits, e.g. ``45,000.5``."""
    if isinstance(value, int):
        return f"{value:,}"
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


# === Provider detection ===


def _sources_of(payload: Dict[str, Any]) -> List[str]:
    sources = _as_dict(payload.get("result")).get("sources")
    if not isinstance(sources, list):
        return []
    return [str(s) for s in sources if s not in (None, "")]


def _has_temperature(payload: Dict[str, Any]) -> bool:
    for container in (payload, _as_dict(payload.get("raw_data")), _as_dict(payload.get("result"))):
        if any(container.get(name) is not None for name in TEMPERATURE_FIELDS):
            return True
    return False


def _provider_from_content(payload: Dict[str, Any], topic_id: str, rules: ProviderRules) -> Optional[str]:
    if _has_temperature(payload):
        return "weather"

    result = _as_dict(payload.get("result"))
    query = payload.get("query")
    if is_number(result.get("value")) and isinstance(query, str) and "price" in query.lower():
        if rules.dia_topic_id and topic_id == rules.dia_topic_id:
            return "dia"
        return "coingecko"

    if payload.get("price") is not None or result.get("price") is not None:
        return "coingecko"

    answer = payload.get("answer")
    if isinstance(answer, str) and any(emoji in answer for emoji in WEATHER_EMOJI):
        return "weather"
    return None


def detect_provider(
    payload: Dict[str, Any], topic_id: str, rules: Optional[ProviderRules] = None
) -> str:
    """
    Best-effort provider name for a payload published on ``topic_id``.

    Order: ``oracle_used``, aliased ``provider``, ``result.sources`` ranked by
    priority, content sniffing, the topic table, then ``"unknown"``.
    """
    rules = rules or ProviderRules.from_settings()

    oracle_used = payload.get("oracle_used")
    if isinstance(oracle_used, str) and oracle_used:
        return oracle_used

    provider = payload.get("provider")
    if isinstance(provider, str) and provider:
        return rules.aliases.get(provider, provider)

    sources = _sources_of(payload)
    if sources:
        lowered = [s.lower() for s in sources]
        for preferred in rules.priority:
            if preferred in lowered:
                return preferred
        return sources[0]

    sniffed = _provider_from_content(payload, topic_id, rules)
    if sniffed:
        return sniffed

    return rules.topic_providers.get(topic_id, UNKNOWN_PROVIDER)


# === Result / metrics extraction ===


def extract_result_from_message(payload: Dict[str, Any]) -> str:
    """Display string for the oracle answer carried by ``payload``."""
    answer = payload.get("answer")
    if isinstance(answer, str) and answer:
        return answer

    result = payload.get("result")
    if isinstance(result, dict):
        if is_number(result.get("value")):
            return format_usd(result["value"])
        if result.get("price") is not None:
            return stringify(result["price"])
    if result is not None and result != "":
        return stringify(result)

    temperature = _as_dict(payload.get("raw_data")).get("temperature")
    if temperature is not None:
        return f"{temperature}°C"

    return PROCESSING


def looks_like_completed_answer(payload: Dict[str, Any]) -> bool:
    if payload.get("answer"):
        return True
    return bool(payload.get("oracle_used")) and (
        payload.get("result") is not None or bool(payload.get("raw_data"))
    )


def extract_execution_time(payload: Dict[str, Any]) -> Tuple[int, ExecutionTimeSource]:
    """
    Execution time in milliseconds and where it came from.

    Completed answers without a latency field get an estimate in [500, 2000).
    The estimate is seeded from the payload so a message always maps to the
    same value.
    """
    for name in EXECUTION_TIME_FIELDS:
        value = as_float(payload.get(name))
        if value is not None:
            return int(round(value)), "measured"

    if looks_like_completed_answer(payload):
        seed = json.dumps(payload, sort_keys=True, default=str)
        low, high = ESTIMATED_EXECUTION_RANGE_MS
        return random.Random(seed).randrange(low, high), "estimated"

    return 0, "none"


def scale_confidence(value: float) -> float:
    """Fractions (<= 1) become percentages; percentages are left alone."""
    scaled = value * 100 if value <= 1 else value
    return round(scaled, 2)


def extract_confidence(payload: Dict[str, Any]) -> Tuple[float, ConfidenceSource]:
    value = as_float(_as_dict(payload.get("result")).get("confidence"))
    if value is None:
        value = as_float(payload.get("confidence"))
    if value is None:
        return DEFAULT_CONFIDENCE, "default"
    return scale_confidence(value), "reported"


def extract_sources(payload: Dict[str, Any], provider: str) -> List[str]:
    sources = _sources_of(payload)
    if sources:
        return sources
    return [] if provider == UNKNOWN_PROVIDER else [provider]


# === Timestamps ===


def to_iso(moment: datetime) -> str:
    """Render like JavaScript's ``Date.toISOString``: ``2025-01-08T12:00:00.000Z``."""
    moment = moment.astimezone(timezone.utc)
    return f"{moment:%Y-%m-%dT%H:%M:%S}.{moment.microsecond // 1000:03d}Z"


def _from_unix(value: float) -> datetime:
    millis = value * 1000 if abs(value) < SECONDS_THRESHOLD else value
    return _EPOCH + timedelta(milliseconds=int(millis))


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO or RFC 2822 date string; naive values are taken as UTC."""
    try:
        moment = datetime.fromisoformat(value.strip())
    except ValueError:
        try:
            moment = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def normalize_timestamp(value: Any, now: Optional[datetime] = None) -> str:
    """
    Normalize heterogeneous timestamps to an ISO-8601 string.

    ISO strings (anything containing ``T``) pass through unchanged; Unix
    seconds, Unix milliseconds and Mirror Node ``seconds.nanos`` strings are
    converted; other strings are parsed as dates. Anything unusable becomes
    the current time.
    """
    try:
        if isinstance(value, str):
            if "T" in value:
                return value
            if _NUMERIC_RE.match(value):
                return to_iso(_from_unix(float(value)))
            parsed = parse_timestamp(value)
            if parsed is not None:
                return to_iso(parsed)
        elif is_number(value):
            return to_iso(_from_unix(float(value)))
    except (OverflowError, ValueError):
        pass
    return to_iso(now or datetime.now(timezone.utc))


def timestamp_sort_key(value: str) -> datetime:
    """Comparable key for an already-normalized timestamp; unparsable sorts oldest."""
    parsed = parse_timestamp(value) if value else None
    return parsed or datetime.min.replace(tzinfo=timezone.utc)


__all__ = [
    "DEFAULT_CONFIDENCE",
    "as_float",
    "PROCESSING",
    "ProviderRules",
    "UNKNOWN_PROVIDER",
    "detect_provider",
    "extract_confidence",
    "extract_execution_time",
    "extract_result_from_message",
    "extract_sources",
    "format_locale_number",
    "format_usd",
    "normalize_timestamp",
    "parse_timestamp",
    "scale_confidence",
    "stringify",
    "timestamp_sort_key",
    "to_iso",
]
