"""Query history endpoint backing the dashboard's history panel."""

from __future__ import annotations

from typing import Optional

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from oracle_history.aggregator import build_query_history
from oracle_history.api.deps import get_app_settings, get_http_client
from oracle_history.config import Settings
from oracle_history.utils.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["history"])


@router.get("/query-history")
async def get_query_history(
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """
    Newest oracle queries reconstructed from HCS topic messages.

    Topic and message failures only shrink the result; a 500 is returned
    only when something escapes the pipeline (e.g. a non-integer ``limit``).
    """
    try:
        effective_limit = int(limit) if limit is not None else settings.history_default_limit
        effective_offset = int(offset) if offset is not None else 0
        page = await build_query_history(
            client, limit=effective_limit, offset=effective_offset, settings=settings
        )
    except Exception as exc:  # noqa: BLE001 - last-resort guard, reported as 500
        log.exception("[QUERY HISTORY] Failed to build history")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Failed to fetch query history",
                "details": str(exc) or type(exc).__name__,
            },
        )

    return JSONResponse(
        content={
            "success": True,
            "data": [record.model_dump(mode="json") for record in page.data],
            "meta": page.meta.model_dump(mode="json"),
        },
        headers={"Cache-Control": "no-store"},
    )
