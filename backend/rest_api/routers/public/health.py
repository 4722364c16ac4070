"""
Health check endpoints for the REST API.
Provides basic and detailed health status of the service and its dependencies.
"""

import asyncio

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal
from shared.infrastructure.events import check_redis_sync_health


router = APIRouter(prefix="/api", tags=["health"])

HEALTH_CHECK_TIMEOUT = 3.0  # seconds


@router.get("/health")
def health_check():
    """
    Basic health check endpoint.
    Returns service status without checking dependencies.
    """
    return {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
    }


def _ping_database() -> None:
    with SessionLocal() as db:
        db.execute(text("SELECT 1"))


async def check_database_health() -> dict:
    try:
        await asyncio.wait_for(asyncio.to_thread(_ping_database), timeout=HEALTH_CHECK_TIMEOUT)
        return {"status": "healthy"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


@router.get("/health/detailed")
async def detailed_health_check():
    """
    Detailed health check that verifies the database and the Redis pool
    used to notify display screens.

    Redis is only required when the redis notifier backend is configured.
    Returns 503 Service Unavailable if a required dependency is down.
    """
    dependencies = {"database": await check_database_health()}
    required = ["database"]

    if settings.queue_notifier_backend == "redis":
        dependencies["redis"] = await asyncio.to_thread(check_redis_sync_health)
        required.append("redis")

    all_healthy = all(dependencies[name]["status"] == "healthy" for name in required)
    checks = {
        "service": "rest-api",
        "environment": settings.environment,
        "queue_notifier": settings.queue_notifier_backend,
        "status": "healthy" if all_healthy else "degraded",
        "dependencies": dependencies,
    }

    if not all_healthy:
        return JSONResponse(content=checks, status_code=503)
    return checks
