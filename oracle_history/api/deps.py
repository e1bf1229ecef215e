"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from typing import AsyncIterator

import httpx
from fastapi import Depends

from oracle_history.config import Settings, get_settings
from oracle_history.infrastructure.http_factory import build_async_client
from oracle_history.infrastructure.oracle_manager import OracleManagerClient


def get_app_settings() -> Settings:
    return get_settings()


async def get_http_client(
    settings: Settings = Depends(get_app_settings),
) -> AsyncIterator[httpx.AsyncClient]:
    """One outbound client per request, closed when the response is sent."""
    async with build_async_client(settings) as client:
        yield client


def get_oracle_manager(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_app_settings),
) -> OracleManagerClient:
    return OracleManagerClient(client, settings)
