"""
Proxy routes to the Oracle Manager backend.

Each route reshapes the request into the backend's form, relays the upstream
status code and JSON body, and turns any failure into
``{"success": false, "error": ...}`` with a 500.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from oracle_history.api.deps import get_oracle_manager
from oracle_history.infrastructure.oracle_manager import (
    OracleManagerClient,
    UpstreamResponse,
    replace_web_search_provider,
)
from oracle_history.utils.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["oracle"])


def _relay(upstream: UpstreamResponse, body: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=upstream.status_code,
        content=upstream.body if body is None else body,
    )


def _failure(error: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@router.get("/oracle/query")
async def oracle_query(
    q: Optional[str] = None,
    sources: Optional[str] = None,
    method: Optional[str] = None,
    timeout: Optional[str] = None,
    manager: OracleManagerClient = Depends(get_oracle_manager),
) -> JSONResponse:
    if not q:
        return _failure('Query parameter "q" is required', status_code=400)
    params = {"q": q}
    for key, value in (("sources", sources), ("method", method), ("timeout", timeout)):
        if value:
            params[key] = value
    try:
        return _relay(await manager.query(params))
    except Exception:  # noqa: BLE001 - any proxy failure is reported as 500
        log.exception("[ORACLE PROXY] Query failed")
        return _failure("Failed to process oracle query")


@router.post("/oracle/query")
async def oracle_query_submit(
    request: Request,
    manager: OracleManagerClient = Depends(get_oracle_manager),
) -> JSONResponse:
    """Assistant-style query: ``{query, provider, userId}``."""
    try:
        body = await request.json()
        params = {"q": str(body.get("query", ""))}
        if body.get("provider"):
            params["sources"] = str(body["provider"])
        if body.get("userId"):
            params["user"] = str(body["userId"])
        return _relay(await manager.query(params))
    except Exception:  # noqa: BLE001 - any proxy failure is reported as 500
        log.exception("[ORACLE PROXY] Query submission failed")
        return _failure("Failed to process oracle query")


@router.post("/oracle/batch")
async def oracle_batch(
    request: Request,
    manager: OracleManagerClient = Depends(get_oracle_manager),
) -> JSONResponse:
    try:
        body = await request.json()
        queries = body.get("queries") if isinstance(body, dict) else None
        if not isinstance(queries, list):
            return _failure("Queries array is required", status_code=400)
        items = [q if isinstance(q, dict) else {"query": q} for q in queries]
        results = await manager.submit_batch(items)
    except Exception:  # noqa: BLE001 - any proxy failure is reported as 500
        log.exception("[ORACLE PROXY] Batch failed")
        return _failure("Failed to process batch queries")

    successful = sum(1 for r in results if isinstance(r, dict) and r.get("success"))
    return JSONResponse(
        content={
            "success": True,
            "data": {
                "results": results,
                "total_queries": len(queries),
                "successful_queries": successful,
            },
        }
    )


@router.get("/oracle/price/{symbol}")
async def oracle_price(
    symbol: str,
    sources: Optional[str] = None,
    method: Optional[str] = None,
    manager: OracleManagerClient = Depends(get_oracle_manager),
) -> JSONResponse:
    body: Dict[str, Any] = {"query": f"{symbol} price"}
    if sources:
        body["sources"] = [s for s in sources.split(",") if s]
    if method:
        body["method"] = method
    try:
        return _relay(await manager.submit_query(body))
    except Exception:  # noqa: BLE001 - any proxy failure is reported as 500
        log.exception("[ORACLE PROXY] Price query failed", extra={"symbol": symbol})
        return _failure("Failed to fetch price data")


@router.get("/oracle/weather/{location}")
async def oracle_weather(
    location: str,
    manager: OracleManagerClient = Depends(get_oracle_manager),
) -> JSONResponse:
    try:
        return _relay(await manager.submit_query({"query": f"weather in {location}"}))
    except Exception:  # noqa: BLE001 - any proxy failure is reported as 500
        log.exception("[ORACLE PROXY] Weather query failed", extra={"location": location})
        return _failure("Failed to fetch weather data")


@router.get("/oracles/status")
async def oracles_status(manager: OracleManagerClient = Depends(get_oracle_manager)) -> JSONResponse:
    try:
        return _relay(await manager.stats())
    except Exception:  # noqa: BLE001 - any proxy failure is reported as 500
        log.exception("[ORACLE PROXY] Status failed")
        return _failure("Failed to fetch oracle status")


@router.post("/oracle/health-check")
async def oracle_health_check(
    manager: OracleManagerClient = Depends(get_oracle_manager),
) -> JSONResponse:
    try:
        upstream = await manager.stats()
    except Exception:  # noqa: BLE001 - any proxy failure is reported as 500
        log.exception("[ORACLE PROXY] Health check failed")
        return _failure("Failed to perform health check")

    stats = upstream.body if isinstance(upstream.body, dict) else {}
    success = bool(stats.get("success"))
    data = stats.get("data") if isinstance(stats.get("data"), dict) else {}
    providers = data.get("providers") if isinstance(data.get("providers"), list) else []
    return _relay(
        upstream,
        body={
            "success": success,
            "data": {
                "system_health": 100 if success else 0,
                "providers_online": len(providers),
                "timestamp": int(time.time() * 1000),
            },
        },
    )


@router.get("/oracle-manager/providers")
async def oracle_manager_providers(
    manager: OracleManagerClient = Depends(get_oracle_manager),
) -> JSONResponse:
    try:
        upstream = await manager.providers()
    except Exception:  # noqa: BLE001 - any proxy failure is reported as 500
        log.exception("[ORACLE PROXY] Providers failed")
        return _failure("Failed to fetch oracle manager providers")
    return _relay(upstream, body=replace_web_search_provider(upstream.body))
