"""
Redis Health Check Functions.
"""

from __future__ import annotations

import asyncio
from typing import Any

from shared.config.settings import settings
from .redis_pool import get_redis_pool, get_redis_sync_client, _get_redis_sync_pool


async def check_redis_async_health(timeout: float = 3.0) -> dict[str, Any]:
    """Ping the async client. Never raises; failures are reported in the dict."""
    try:
        pool = await get_redis_pool()
        await asyncio.wait_for(pool.ping(), timeout=timeout)
        return {
            "status": "healthy",
            "type": "async",
            "max_connections": settings.redis_pool_max_connections,
        }
    except Exception as e:
        return {"status": "unhealthy", "type": "async", "error": str(e)}


def check_redis_sync_health() -> dict[str, Any]:
    """Ping through the sync pool used for publishing."""
    try:
        get_redis_sync_client().ping()
        return {
            "status": "healthy",
            "type": "sync_pool",
            "max_connections": _get_redis_sync_pool().max_connections,
        }
    except Exception as e:
        return {"status": "unhealthy", "type": "sync_pool", "error": str(e)}
