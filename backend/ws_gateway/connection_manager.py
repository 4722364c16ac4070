"""
WebSocket connection manager.
Tracks active connections per topic: staff queue screens ("queue") and
public customer displays ("display").
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.events import TOPICS

logger = get_logger(__name__)


def _is_ws_connected(ws: WebSocket) -> bool:
    """True if the socket is ready to send/receive messages."""
    return ws.client_state == WebSocketState.CONNECTED and ws.application_state == WebSocketState.CONNECTED


class ConnectionManager:
    """
    Manages WebSocket connections for the queue and display screens.

    Each socket belongs to exactly one topic. Dict modifications happen
    under an asyncio.Lock; sends iterate over a snapshot.
    """

    def __init__(
        self,
        max_connections_per_topic: int | None = None,
        heartbeat_timeout: float | None = None,
    ):
        self.max_connections_per_topic = (
            max_connections_per_topic or settings.ws_max_connections_per_channel
        )
        self.heartbeat_timeout = heartbeat_timeout or settings.ws_heartbeat_timeout
        self._shutdown = False
        self.by_topic: dict[str, set[WebSocket]] = {}
        self._ws_to_topic: dict[WebSocket, str] = {}
        self._ws_to_user: dict[WebSocket, str | None] = {}
        self._last_heartbeat: dict[WebSocket, float] = {}
        self._lock = asyncio.Lock()

    async def connect(
        self,
        websocket: WebSocket,
        topic: str,
        user_id: str | None = None,
        timeout: float = 5.0,
    ) -> None:
        """
        Accept a WebSocket connection and register it under a topic.

        Args:
            websocket: The WebSocket connection.
            topic: "queue" or "display".
            user_id: Staff user id; None for the public display.
            timeout: Timeout for the accept handshake.

        Raises:
            ValueError: unknown topic.
            ConnectionError: shutting down, accept timed out or topic full.
        """
        if topic not in TOPICS:
            raise ValueError(f"Unknown topic '{topic}'")
        if self._shutdown:
            raise ConnectionError("Server is shutting down")

        try:
            await asyncio.wait_for(websocket.accept(), timeout=timeout)
        except asyncio.TimeoutError:
            raise ConnectionError("WebSocket accept timed out")

        async with self._lock:
            if len(self.by_topic.get(topic, ())) >= self.max_connections_per_topic:
                full = True
            else:
                full = False
                self.by_topic.setdefault(topic, set()).add(websocket)
                self._ws_to_topic[websocket] = topic
                self._ws_to_user[websocket] = user_id
                self._last_heartbeat[websocket] = time.time()

        if full:
            await websocket.close(code=1008, reason="Too many connections")
            raise ConnectionError(
                f"Topic '{topic}' exceeded max connections ({self.max_connections_per_topic})"
            )

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a connection. Safe to call twice."""
        async with self._lock:
            self._last_heartbeat.pop(websocket, None)
            self._ws_to_user.pop(websocket, None)
            topic = self._ws_to_topic.pop(websocket, None)
            if topic is not None and topic in self.by_topic:
                self.by_topic[topic].discard(websocket)
                if not self.by_topic[topic]:
                    del self.by_topic[topic]

    async def send_to_topic(self, topic: str, payload: dict[str, Any]) -> int:
        """
        Send a message to every connection of a topic.

        Returns:
            Number of connections that received the message.
        """
        connections = list(self.by_topic.get(topic, ()))
        sent = 0
        for ws in connections:
            if not _is_ws_connected(ws):
                logger.debug("Skipping send to disconnected socket", topic=topic)
                continue
            try:
                await ws.send_json(payload)
                sent += 1
            except Exception as e:
                logger.warning("Failed to send message", topic=topic, error=str(e))
        return sent

    @property
    def total_connections(self) -> int:
        return len(self._ws_to_topic)

    def get_stats(self) -> dict[str, Any]:
        """Get connection statistics."""
        return {
            "total_connections": self.total_connections,
            "queue_connections": len(self.by_topic.get("queue", ())),
            "display_connections": len(self.by_topic.get("display", ())),
        }

    # =========================================================================
    # Heartbeats
    # =========================================================================

    def record_heartbeat(self, websocket: WebSocket) -> None:
        self._last_heartbeat[websocket] = time.time()

    def get_stale_connections(self) -> list[WebSocket]:
        """Connections without a heartbeat within heartbeat_timeout."""
        now = time.time()
        return [
            ws
            for ws, last_time in list(self._last_heartbeat.items())
            if now - last_time > self.heartbeat_timeout
        ]

    async def cleanup_stale_connections(self) -> int:
        """
        Close and remove stale connections.

        Returns:
            Number of connections cleaned up.
        """
        stale = self.get_stale_connections()
        for ws in stale:
            try:
                await ws.close(code=1001, reason="Heartbeat timeout")
            except Exception as e:
                logger.warning("Failed to close stale connection", error=str(e))
            await self.disconnect(ws)
        return len(stale)

    async def shutdown(self) -> int:
        """
        Close every connection and reject new ones.

        Returns:
            Number of connections closed.
        """
        self._shutdown = True
        logger.info("WebSocket manager shutting down")

        async with self._lock:
            all_connections = list(self._ws_to_topic)

        closed = 0
        for ws in all_connections:
            try:
                await ws.close(code=1001, reason="Server shutdown")
                closed += 1
            except Exception as e:
                logger.warning("Failed to close connection during shutdown", error=str(e))
            await self.disconnect(ws)

        logger.info("WebSocket shutdown complete", closed=closed)
        return closed

    def is_shutting_down(self) -> bool:
        return self._shutdown
