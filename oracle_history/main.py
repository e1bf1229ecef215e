from __future__ import annotations

import asyncio
import json
import sys
from typing import Optional

import typer

from oracle_history.aggregator import build_query_history
from oracle_history.config import get_settings
from oracle_history.domain.models import QueryHistoryPage
from oracle_history.infrastructure.http_factory import build_async_client
from oracle_history.reporter import print_history
from oracle_history.utils.logging import configure_logging

app = typer.Typer(help="Oracle query history from Hedera Consensus Service topics.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"mirror={settings.mirror_node_url} | topics_backend={settings.hcs_topics_url} | "
        f"oracle_manager={settings.oracle_manager_url}"
    )
    typer.echo(
        f"known_topics={len(settings.known_topics)} per_topic={settings.mirror_messages_per_topic} "
        f"concurrency={settings.mirror_max_concurrency} timeout={settings.mirror_timeout_seconds}s"
    )


async def _fetch_history(limit: Optional[int]) -> QueryHistoryPage:
    settings = get_settings()
    async with build_async_client(settings) as client:
        return await build_query_history(client, limit=limit, settings=settings)


@app.command()
def history(
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        help="Maximum records to show (default from settings).",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the API response body instead of a table.",
    ),
) -> None:
    """
    Scan all topics once and print the newest oracle queries.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    page = asyncio.run(_fetch_history(limit))

    if as_json:
        body = {
            "success": True,
            "data": [record.model_dump(mode="json") for record in page.data],
            "meta": page.meta.model_dump(mode="json"),
        }
        typer.echo(json.dumps(body, indent=2, ensure_ascii=False))
        return
    print_history(page.data, page.meta)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from settings)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (default from settings)."),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes."),
) -> None:
    """
    Run the HTTP API under uvicorn.
    """
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "oracle_history.api.app:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
