"""
Queue Notifier.

Fans order state changes out to the staff queue screens ("queue" topic)
and the public customer display ("display" topic).

The transport is picked once at startup by build_queue_notifier() and
handed to the services through a FastAPI dependency:

    notifier = build_queue_notifier(settings)      # lifespan
    app.state.queue_notifier = notifier

Delivery is best-effort and at-most-once. A payment that already
committed is never undone or re-run because a notification was lost.
"""

from __future__ import annotations

from typing import Callable, Protocol

import redis

from shared.config.logging import get_logger
from shared.config.settings import Settings
from shared.infrastructure.events import (
    ORDER_CANCELLED,
    ORDER_DELIVERED,
    ORDER_READY,
    TOPIC_DISPLAY,
    TOPIC_QUEUE,
    OrderEvent,
    get_redis_sync_client,
    publish_event,
)
from rest_api.models import Order
from rest_api.services.domain.order_output import build_order_output

logger = get_logger(__name__)


class QueueNotifier(Protocol):
    """Capability every transport provides."""

    def broadcast(self, topic: str, payload: OrderEvent) -> None:
        ...


class RedisQueueNotifier:
    """Publishes events on the Redis channels the WebSocket gateway subscribes to."""

    def __init__(self, client_factory: Callable[[], redis.Redis] = get_redis_sync_client):
        self._client_factory = client_factory

    def broadcast(self, topic: str, payload: OrderEvent) -> None:
        if payload.topic != topic:
            raise ValueError(f"Event topic '{payload.topic}' does not match '{topic}'")
        publish_event(self._client_factory(), payload)


class NullQueueNotifier:
    """Drops every message. Used in tests and when no gateway is deployed."""

    def broadcast(self, topic: str, payload: OrderEvent) -> None:
        logger.debug("Queue notification dropped", topic=topic, event_type=payload.type)


def build_queue_notifier(settings: Settings) -> QueueNotifier:
    """Select the transport from settings.queue_notifier_backend."""
    backend = settings.queue_notifier_backend.lower()
    if backend == "redis":
        return RedisQueueNotifier()
    if backend == "none":
        return NullQueueNotifier()
    raise ValueError(f"Unknown queue notifier backend: {settings.queue_notifier_backend}")


class OrderEventNotifier:
    """
    Builds order messages and sends them through a QueueNotifier.

    Never raises: a failed broadcast is logged and the next topic is
    still attempted.
    """

    def __init__(self, notifier: QueueNotifier):
        self._notifier = notifier

    def order_ready(self, order: Order) -> None:
        self._send(
            ORDER_READY,
            (TOPIC_QUEUE, TOPIC_DISPLAY),
            lambda: build_order_output(order).model_dump(mode="json"),
        )

    def order_delivered(self, order: Order) -> None:
        self._send(ORDER_DELIVERED, (TOPIC_QUEUE, TOPIC_DISPLAY), lambda: _ticket_data(order))

    def order_cancelled(self, order: Order) -> None:
        # The customer display never showed a pending order
        self._send(ORDER_CANCELLED, (TOPIC_QUEUE,), lambda: _ticket_data(order))

    def _send(
        self, event_type: str, topics: tuple[str, ...], build_data: Callable[[], dict]
    ) -> None:
        try:
            data = build_data()
        except Exception as e:
            logger.error(
                "Queue notification could not be built",
                event_type=event_type,
                error=str(e),
                exc_info=True,
            )
            return

        order_id = data.get("order_id", data.get("id"))
        for topic in topics:
            try:
                self._notifier.broadcast(topic, OrderEvent(type=event_type, topic=topic, data=data))
            except Exception as e:
                logger.error(
                    "Queue notification failed",
                    event_type=event_type,
                    topic=topic,
                    order_id=order_id,
                    error=str(e),
                    exc_info=True,
                )


def _ticket_data(order: Order) -> dict:
    return {"order_id": order.id, "ticket_number": order.ticket_number}
