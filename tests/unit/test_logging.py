from __future__ import annotations

import json
import logging

from oracle_history.utils.logging import _json_formatter, configure_logging

EXPECTED_MESSAGES = 30
EXPECTED_TOPICS = 11


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record("[TOPIC FETCH] done")
    record.messages = EXPECTED_MESSAGES
    record.topic_id = "0.0.6533324"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "[TOPIC FETCH] done"
    assert payload["messages"] == EXPECTED_MESSAGES
    assert payload["topic_id"] == "0.0.6533324"
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"topics_count": EXPECTED_TOPICS}

    payload = json.loads(_json_formatter(record))

    assert payload["topics_count"] == EXPECTED_TOPICS


def test_json_formatter_serializes_non_json_values() -> None:
    record = _record()
    record.topics_failed = {"0.0.1001"}

    payload = json.loads(_json_formatter(record))

    assert payload["topics_failed"] == "{'0.0.1001'}"


def test_configure_logging_quiets_httpx_unless_debug() -> None:
    configure_logging(level="INFO")
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(level="DEBUG")
    assert logging.getLogger("httpx").level == logging.DEBUG
