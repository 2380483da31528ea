"""Health check endpoint.

Learn: Verifies the server is running and its dependencies (database,
Redis) are reachable. Any failing dependency marks the service
degraded and turns the status code into 503.
"""

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from storefront import __version__

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("storefront.health.database_failed", error=str(e))
        checks["database"] = "disconnected"

    checks["redis"] = "ok" if await request.app.state.store.ping() else "disconnected"

    status = "ok" if all(
        v == "ok" for k, v in checks.items() if k != "version"
    ) else "degraded"

    return JSONResponse(
        status_code=200 if status == "ok" else 503,
        content={"success": status == "ok", "status": status, **checks},
    )
