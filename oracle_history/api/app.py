"""
FastAPI application: query history plus the Oracle Manager proxy routes.

Run with ``oracle-history serve`` or ``uvicorn oracle_history.api.app:app``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from oracle_history import __version__
from oracle_history.api import oracle_proxy, query_history
from oracle_history.config import Settings, get_settings
from oracle_history.utils.logging import configure_logging


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    app = FastAPI(
        title="Oracle Query History",
        description="Oracle query history from Hedera HCS topics, plus Oracle Manager proxies",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.include_router(query_history.router)
    app.include_router(oracle_proxy.router)

    @app.get("/api/health")
    async def health() -> dict:
        return {"status": "healthy", "service": "oracle_history", "version": __version__}

    return app


app = create_app()
