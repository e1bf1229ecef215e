"""
Sample data script for the Oracle Query History service.

Writes a deterministic, seeded Mirror Node topic page (``{"messages": [...]}``)
mixing ORACLE_QUERY / COMPUTE_OPERATION pairs with direct oracle answers, so
the decoding and reconciliation pipeline can be exercised without a network.
"""

from __future__ import annotations

import base64
import json
import random
import sys
import time
from pathlib import Path
from typing import Any, Dict, List

import typer

app = typer.Typer(help="Generate a synthetic Mirror Node topic messages page.")

BASE_CONSENSUS_SECONDS = 1_736_337_600  # 2025-01-08T12:00:00Z
PAYER_ACCOUNT = "0.0.6496308"

SYMBOLS = ["BTC", "ETH", "HBAR", "SOL"]
CITIES = ["London", "Lisbon", "Tokyo", "Nairobi"]
PRICE_SOURCES = ["coingecko", "dia", "chainlink"]


def encode_message(payload: Dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def _mirror_entry(payload: Dict[str, Any], topic_id: str, sequence: int, seconds: int) -> Dict[str, Any]:
    return {
        "consensus_timestamp": f"{seconds}.{sequence:09d}",
        "message": encode_message(payload),
        "payer_account_id": PAYER_ACCOUNT,
        "sequence_number": sequence,
        "topic_id": topic_id,
        "chunk_info": {
            "initial_transaction_id": {
                "account_id": PAYER_ACCOUNT,
                "transaction_valid_start": f"{seconds - 3}.{sequence:09d}",
            },
            "number": 1,
            "total": 1,
        },
    }


def _query_pair(rng: random.Random, index: int, seconds: int) -> List[Dict[str, Any]]:
    symbol = rng.choice(SYMBOLS)
    price = round(rng.uniform(0.05, 90_000), 2)
    sources = rng.sample(PRICE_SOURCES, k=2)
    query_id = f"q-{index:04d}"
    oracle_result = {
        "result": price,
        "confidence": round(rng.uniform(0.7, 0.99), 2),
        "sources": sources,
        "consensus_method": rng.choice(["median", "weighted_average"]),
    }
    query = {
        "type": "ORACLE_QUERY",
        "queryId": query_id,
        "inputPrompt": f"{symbol} price",
        "provider": sources[0],
        "timestamp": seconds * 1000,
    }
    operation = {
        "type": "COMPUTE_OPERATION",
        "operationId": query_id,
        "success": True,
        "executionTime": rng.randint(80, 1500),
        "aiResponse": f"Oracle query result: {json.dumps(oracle_result)}",
    }
    return [query, operation]


def _direct_answer(rng: random.Random, index: int, seconds: int) -> Dict[str, Any]:
    if rng.random() < 0.5:
        city = rng.choice(CITIES)
        temperature = rng.randint(-5, 35)
        return {
            "query_id": f"d-{index:04d}",
            "query": f"weather in {city}",
            "answer": f"🌤 {city}: {temperature}°C",
            "oracle_used": "weather",
            "raw_data": {"temperature": temperature},
            "timestamp": seconds,
        }
    symbol = rng.choice(SYMBOLS)
    return {
        "query_id": f"d-{index:04d}",
        "query": f"{symbol} price",
        "result": {"value": round(rng.uniform(0.05, 90_000), 2), "sources": ["coingecko"]},
        "timestamp": seconds,
    }


def _generate_topic_messages(count: int, topic_id: str, seed: int) -> List[Dict[str, Any]]:
    """
    Build ``count`` logical entries as Mirror Node messages, newest first.

    Each entry is either a query/operation pair (two messages) or a single
    direct answer.
    """
    rng = random.Random(seed)
    entries: List[Dict[str, Any]] = []
    sequence = 1
    for index in range(count):
        seconds = BASE_CONSENSUS_SECONDS + index * 60
        payloads = (
            _query_pair(rng, index, seconds)
            if rng.random() < 0.6
            else [_direct_answer(rng, index, seconds)]
        )
        for payload in payloads:
            entries.append(_mirror_entry(payload, topic_id, sequence, seconds))
            sequence += 1
    entries.reverse()
    return entries


@app.command()
def main(
    count: int = typer.Option(
        20,
        "--count",
        "-n",
        help="Number of logical entries (query pairs or direct answers).",
    ),
    topic_id: str = typer.Option(
        "0.0.6533324",
        "--topic",
        "-t",
        help="Topic ID written into every message.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path = typer.Option(
        Path("messages.json"),
        "--output",
        "-o",
        help="Path of the generated JSON page.",
    ),
) -> None:
    """
    Generate a Mirror Node topic messages page for local demos.
    """
    start = time.perf_counter()
    messages = _generate_topic_messages(count, topic_id=topic_id, seed=seed)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as f:
        json.dump({"messages": messages, "links": {"next": None}}, f, indent=2)
    duration = time.perf_counter() - start
    typer.echo(
        f"Wrote {len(messages)} messages ({count} entries, seed={seed}) -> {output} "
        f"in {duration:.2f}s"
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
