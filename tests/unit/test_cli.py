from __future__ import annotations

import json

from typer.testing import CliRunner

from oracle_history import main as cli

QUERY_TOPIC = "0.0.1001"

runner = CliRunner()


def _patch_cli(monkeypatch, upstream) -> None:
    monkeypatch.setattr(cli, "get_settings", lambda: upstream.settings)
    monkeypatch.setattr(cli, "configure_logging", lambda **_: None)
    monkeypatch.setattr(cli, "build_async_client", lambda settings: upstream.client())


def test_info_shows_effective_configuration(monkeypatch, upstream):
    _patch_cli(monkeypatch, upstream)

    result = runner.invoke(cli.app, ["info"])

    assert result.exit_code == 0, result.output
    assert "mirror=http://mirror.test" in result.output
    assert "known_topics=2" in result.output


def test_history_json_output(monkeypatch, upstream):
    _patch_cli(monkeypatch, upstream)
    upstream.add_message(QUERY_TOPIC, {"query": "weather in Tokyo", "answer": "☁ 12°C"})

    result = runner.invoke(cli.app, ["history", "--limit", "5", "--json"])

    assert result.exit_code == 0, result.output
    body = json.loads(result.output)
    assert body["success"] is True
    assert body["meta"]["limit"] == 5
    assert body["data"][0]["query"] == "weather in Tokyo"
    assert body["data"][0]["provider"] == "weather"


def test_history_table_output(monkeypatch, upstream):
    _patch_cli(monkeypatch, upstream)
    upstream.add_message(QUERY_TOPIC, {"query": "BTC price", "result": {"value": 45000}})

    result = runner.invoke(cli.app, ["history"])

    assert result.exit_code == 0, result.output
    assert "Oracle Query History" in result.output
    assert "Showing 1 of 1" in result.output


def test_history_with_no_records(monkeypatch, upstream):
    _patch_cli(monkeypatch, upstream)

    result = runner.invoke(cli.app, ["history"])

    assert result.exit_code == 0, result.output
    assert "No oracle history found" in result.output
