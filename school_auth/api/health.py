"""
School Auth — Health endpoint

Both dependency checks run concurrently, each bounded by HEALTH_CHECK_TIMEOUT.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from school_auth.core.config import get_settings
from school_auth.core.redis_client import get_redis
from school_auth.db.database import engine
from school_auth.schemas.auth import HealthResponse

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


async def _ping_database() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def _ping_redis() -> None:
    await get_redis().ping()


DEPENDENCY_CHECKS: dict[str, Callable[[], Awaitable[None]]] = {
    "database": _ping_database,
    "redis": _ping_redis,
}


async def _run_check(name: str, check: Callable[[], Awaitable[None]]) -> tuple[str, str]:
    try:
        await asyncio.wait_for(check(), timeout=settings.HEALTH_CHECK_TIMEOUT)
    except Exception as e:
        logger.warning("%s health check failed: %s", name, e)
        return name, f"error: {str(e)[:100]}"
    return name, "ok"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """200 when every dependency answers, 503 with per-dependency errors otherwise."""
    results = await asyncio.gather(
        *(_run_check(name, check) for name, check in DEPENDENCY_CHECKS.items())
    )
    deps = dict(results)
    healthy = all(state == "ok" for state in deps.values())

    response = HealthResponse(
        status="healthy" if healthy else "degraded",
        service=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        dependencies=deps,
    )
    return JSONResponse(content=response.model_dump(), status_code=200 if healthy else 503)
