from __future__ import annotations

import pytest

from oracle_history.history.embedded_json import (
    extract_embedded_json,
    extract_result_number,
    find_balanced_object,
)

EXPECTED_PRICE = 45000


def test_extracts_object_after_marker() -> None:
    text = 'Computed. Oracle query result: {"result": 45000, "sources": ["coingecko"]} done.'

    assert extract_embedded_json(text) == {"result": EXPECTED_PRICE, "sources": ["coingecko"]}


def test_ignores_braces_inside_strings() -> None:
    text = 'Oracle query result: {"result": 45000, "note": "a } and a {"} trailing }'

    parsed = extract_embedded_json(text)

    assert parsed == {"result": EXPECTED_PRICE, "note": "a } and a {"}


def test_handles_escaped_quotes() -> None:
    text = r'{"answer": "he said \"}\"", "n": {"x": 1}} tail'

    assert find_balanced_object(text) == r'{"answer": "he said \"}\"", "n": {"x": 1}}'


def test_skips_objects_before_the_marker() -> None:
    text = '{"ignored": true} Oracle query result: {"result": 1}'

    assert extract_embedded_json(text) == {"result": 1}


@pytest.mark.parametrize(
    "text",
    [
        "no marker here {\"result\": 1}",
        "Oracle query result: nothing structured",
        'Oracle query result: {"result": 45000',
    ],
)
def test_missing_or_unbalanced_object_returns_none(text: str) -> None:
    assert extract_embedded_json(text) is None


def test_invalid_json_raises_value_error() -> None:
    with pytest.raises(ValueError):
        extract_embedded_json("Oracle query result: {result: 45000}")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ('Oracle query result: {"result":45000', 45000.0),
        ("result = 12.5 units", 12.5),
        ("Result: 3", 3.0),
        ("no numbers", None),
    ],
)
def test_extract_result_number(text: str, expected) -> None:
    assert extract_result_number(text) == expected


def test_non_finite_embedded_values_raise_value_error() -> None:
    with pytest.raises(ValueError):
        extract_embedded_json('Oracle query result: {"result": 1, "confidence": NaN}')
