"""
HTTP client factory for outbound calls (Mirror Node, backend, Oracle Manager).

Clients are created per request or per CLI run and closed by the caller;
no client is shared across requests.
"""

from __future__ import annotations

from typing import Optional

import httpx

from oracle_history import __version__
from oracle_history.config import Settings, get_settings

USER_AGENT = f"oracle-history/{__version__}"


def build_async_client(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Create an ``httpx.AsyncClient`` with the service defaults.

    Parameters
    ----------
    settings : Settings | None
        Source of the default timeout. Individual calls may pass their own.
    transport : httpx.AsyncBaseTransport | None
        Alternate transport, e.g. ``httpx.MockTransport`` in tests.
    """
    settings = settings or get_settings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.mirror_timeout_seconds),
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )


__all__ = ["USER_AGENT", "build_async_client"]
