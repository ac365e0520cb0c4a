"""Health route — liveness plus a Cosmos DB reachability check."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])

logger = logging.getLogger(__name__)


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    settings = request.app.state.settings
    cosmos = request.app.state.cosmos
    try:
        await cosmos.database.read()
        cosmos_ok = True
    except Exception:  # noqa: BLE001
        logger.warning("Cosmos DB health check failed", exc_info=True)
        cosmos_ok = False

    body: dict[str, Any] = {
        "status": "ok" if cosmos_ok else "degraded",
        "environment": settings.app.env,
        "checks": {"cosmos": cosmos_ok},
    }
    return JSONResponse(body, status_code=200 if cosmos_ok else 503)
