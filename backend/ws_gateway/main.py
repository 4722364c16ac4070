"""
WebSocket Gateway main application.
Pushes order events to staff queue screens and the public customer display.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config.constants import ALL_STAFF_ROLES
from shared.config.logging import setup_logging, ws_gateway_logger as logger
from shared.config.settings import settings
from shared.infrastructure.events import (
    TOPIC_DISPLAY,
    TOPIC_QUEUE,
    OrderEvent,
    check_redis_async_health,
    close_redis_pool,
)
from shared.security.auth import ws_auth_context
from rest_api.core.cors import get_cors_origins
from ws_gateway.connection_manager import ConnectionManager
from ws_gateway.redis_subscriber import run_subscriber


# Global connection manager
manager = ConnectionManager()

HEARTBEAT_CLEANUP_INTERVAL = 30  # seconds
SUBSCRIBER_RETRY_DELAY = 2.0  # seconds

# Close codes
WS_CLOSE_UNAUTHORIZED = 4001
WS_CLOSE_FORBIDDEN = 4003
WS_CLOSE_MESSAGE_TOO_BIG = 1009


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Starts the Redis subscriber and the heartbeat cleanup task.
    """
    setup_logging()

    logger.info("Starting WebSocket Gateway", port=settings.ws_gateway_port, env=settings.environment)

    subscriber_task = asyncio.create_task(start_redis_subscriber())
    cleanup_task = asyncio.create_task(start_heartbeat_cleanup())

    yield

    # Shutdown
    logger.info("Shutting down WebSocket Gateway")
    for task in (subscriber_task, cleanup_task):
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    await manager.shutdown()
    await close_redis_pool()
    logger.info("Redis connection pool closed")


async def start_heartbeat_cleanup():
    """Periodically close connections that stopped sending heartbeats."""
    while True:
        try:
            await asyncio.sleep(HEARTBEAT_CLEANUP_INTERVAL)
            cleaned = await manager.cleanup_stale_connections()
            if cleaned > 0:
                logger.info("Cleaned up stale connections", count=cleaned)
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error("Error in heartbeat cleanup", error=str(e))


async def dispatch_event(event: OrderEvent) -> int:
    """Send an event to every screen subscribed to its topic."""
    sent = await manager.send_to_topic(event.topic, asdict(event))
    logger.debug("Dispatched event", event_type=event.type, topic=event.topic, clients=sent)
    return sent


async def start_redis_subscriber():
    """
    Keep the Redis subscriber running. A lost connection is logged and the
    subscription is re-established after a short delay.
    """
    while True:
        try:
            await run_subscriber(dispatch_event)
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error("Redis subscriber error", error=str(e), exc_info=True)
            await asyncio.sleep(SUBSCRIBER_RETRY_DELAY)


app = FastAPI(
    title="Bakery POS WebSocket Gateway",
    description="Real-time pickup queue and customer display",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.get("/ws/health")
def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "ws-gateway",
        "environment": settings.environment,
        **manager.get_stats(),
    }


@app.get("/ws/health/detailed")
async def detailed_health_check():
    """Detailed health check that verifies Redis connectivity."""
    redis_health = await check_redis_async_health()
    all_healthy = redis_health["status"] == "healthy"
    checks = {
        "service": "ws-gateway",
        "environment": settings.environment,
        "connections": manager.get_stats(),
        "dependencies": {"redis": redis_health},
        "status": "healthy" if all_healthy else "degraded",
    }
    if not all_healthy:
        return JSONResponse(content=checks, status_code=503)
    return checks


async def _receive_loop(websocket: WebSocket, topic: str, user_id: str | None) -> None:
    """
    Read client messages until disconnect. Clients only send heartbeats;
    everything else is logged and ignored.
    """
    while True:
        data = await websocket.receive_text()

        if len(data) > settings.ws_max_message_size:
            logger.warning(
                "Message size exceeded limit",
                topic=topic,
                user_id=user_id,
                size=len(data),
                max_size=settings.ws_max_message_size,
            )
            await websocket.close(code=WS_CLOSE_MESSAGE_TOO_BIG, reason="Message too large")
            return

        manager.record_heartbeat(websocket)
        if data == "ping":
            await websocket.send_text("pong")
        elif data == '{"type":"ping"}':
            await websocket.send_text('{"type":"pong"}')
        else:
            logger.debug(
                "Unknown message from client",
                topic=topic,
                user_id=user_id,
                message=data[:100],
            )


async def _serve(websocket: WebSocket, topic: str, user_id: str | None) -> None:
    try:
        await manager.connect(websocket, topic, user_id=user_id)
    except ConnectionError as e:
        logger.warning("WebSocket connection rejected", topic=topic, error=str(e))
        return

    logger.info("Screen connected", topic=topic, user_id=user_id)
    try:
        await _receive_loop(websocket, topic, user_id)
    except WebSocketDisconnect:
        logger.info("Screen disconnected", topic=topic, user_id=user_id)
    finally:
        await manager.disconnect(websocket)


@app.websocket("/ws/queue")
async def queue_websocket(
    websocket: WebSocket,
    token: str | None = Query(default=None, description="Staff JWT"),
):
    """
    Staff queue screen.

    Receives order.ready, order.delivered and order.cancelled.
    Any staff role may connect.
    """
    claims = ws_auth_context(token)
    if claims is None:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED, reason="Invalid or missing token")
        return

    if not ALL_STAFF_ROLES.intersection(claims["roles"]):
        await websocket.close(code=WS_CLOSE_FORBIDDEN, reason="Insufficient role")
        return

    await _serve(websocket, TOPIC_QUEUE, claims["sub"])


@app.websocket("/ws/display")
async def display_websocket(websocket: WebSocket):
    """
    Public customer display. No authentication.

    Receives order.ready and order.delivered.
    """
    await _serve(websocket, TOPIC_DISPLAY, None)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ws_gateway.main:app",
        host="0.0.0.0",
        port=settings.ws_gateway_port,
        reload=settings.debug,
    )
