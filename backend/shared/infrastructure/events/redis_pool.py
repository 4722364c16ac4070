"""
Redis connections.

The REST API publishes from sync endpoints (FastAPI threadpool) through a
shared redis.ConnectionPool. The WebSocket gateway subscribes through one
redis.asyncio client. Both are created on first use and closed by the
owning service's lifespan.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any

import redis as redis_sync
import redis.asyncio as redis

from shared.config.settings import settings, REDIS_URL
from shared.config.logging import get_logger

logger = get_logger(__name__)

HEALTH_CHECK_INTERVAL = 30  # seconds


def _connection_options(max_connections: int) -> dict[str, Any]:
    return {
        "max_connections": max_connections,
        "decode_responses": True,
        "socket_connect_timeout": settings.redis_socket_timeout,
        "socket_timeout": settings.redis_socket_timeout,
        "health_check_interval": HEALTH_CHECK_INTERVAL,
    }


# =============================================================================
# Async client (gateway)
# =============================================================================

_async_client: redis.Redis | None = None
_async_client_lock: asyncio.Lock | None = None


async def get_redis_pool() -> redis.Redis:
    """Return the process-wide async client, creating it on first call."""
    global _async_client, _async_client_lock

    if _async_client is not None:
        return _async_client

    # Bound to the running loop; the gateway has a single loop
    if _async_client_lock is None:
        _async_client_lock = asyncio.Lock()

    async with _async_client_lock:
        if _async_client is None:
            _async_client = redis.from_url(
                REDIS_URL, **_connection_options(settings.redis_pool_max_connections)
            )
            logger.info(
                "Redis async client created",
                max_connections=settings.redis_pool_max_connections,
            )
    return _async_client


# =============================================================================
# Sync pool (REST API)
# =============================================================================

_sync_pool: redis_sync.ConnectionPool | None = None
_sync_pool_lock = threading.Lock()


def _get_redis_sync_pool() -> redis_sync.ConnectionPool:
    global _sync_pool
    with _sync_pool_lock:
        if _sync_pool is None:
            _sync_pool = redis_sync.ConnectionPool.from_url(
                REDIS_URL, **_connection_options(settings.redis_sync_pool_max_connections)
            )
            logger.info(
                "Redis sync pool created",
                max_connections=settings.redis_sync_pool_max_connections,
            )
        return _sync_pool


def get_redis_sync_client() -> redis_sync.Redis:
    """A lightweight client over the shared sync pool. Cheap to create per call."""
    return redis_sync.Redis(connection_pool=_get_redis_sync_pool())


# =============================================================================
# Shutdown
# =============================================================================


def close_redis_sync_client() -> None:
    global _sync_pool
    with _sync_pool_lock:
        pool, _sync_pool = _sync_pool, None
    if pool is None:
        return
    try:
        pool.disconnect()
        logger.info("Redis sync pool closed")
    except redis_sync.RedisError as e:
        logger.warning("Error closing Redis sync pool", error=str(e))


async def close_redis_pool() -> None:
    """Close the async client and the sync pool."""
    global _async_client, _async_client_lock

    client, _async_client = _async_client, None
    _async_client_lock = None
    if client is not None:
        await client.aclose()
        logger.info("Redis async client closed")

    close_redis_sync_client()
