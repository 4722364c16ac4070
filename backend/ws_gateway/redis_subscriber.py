"""
Redis pub/sub subscriber for the WebSocket gateway.
Listens on every "pos:*" channel and hands validated events to a callback.
"""

from __future__ import annotations

import asyncio
import json
from typing import Awaitable, Callable

from shared.config.logging import get_logger
from shared.infrastructure.events import (
    CHANNEL_PATTERN,
    ORDER_EVENT_TYPES,
    OrderEvent,
    get_redis_pool,
    topic_from_channel,
)

logger = get_logger(__name__)


def parse_event(channel: str, raw: str | bytes) -> OrderEvent | None:
    """
    Decode and validate a message. Returns None (and logs why) for anything
    that should not reach a screen: foreign channel, bad JSON, bad envelope,
    or a topic that does not match the channel.
    """
    topic = topic_from_channel(channel)
    if topic is None:
        logger.warning("Message on unknown channel", channel=channel)
        return None

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")

    try:
        event = OrderEvent.from_json(raw)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse Redis message", channel=channel, error=str(e))
        return None
    except (TypeError, ValueError) as e:
        logger.warning("Invalid event schema", channel=channel, error=str(e))
        return None

    if event.topic != topic:
        logger.warning("Event topic does not match channel", channel=channel, topic=event.topic)
        return None

    if event.type not in ORDER_EVENT_TYPES:
        # Forward anyway so newer publishers do not need a gateway release
        logger.warning("Unknown event type received", event_type=event.type)

    return event


async def run_subscriber(
    on_event: Callable[[OrderEvent], Awaitable[None]],
    pattern: str = CHANNEL_PATTERN,
) -> None:
    """
    Pattern-subscribe to the order channels and dispatch events.

    Runs until cancelled. A failing callback is logged and the loop goes on.
    The pubsub connection comes from the shared async pool.
    """
    redis_pool = await get_redis_pool()
    pubsub = redis_pool.pubsub()
    await pubsub.psubscribe(pattern)

    logger.info("Redis subscriber started", pattern=pattern)

    try:
        async for msg in pubsub.listen():
            if msg is None:
                continue

            # Skip subscription confirmation messages
            if msg.get("type") not in ("message", "pmessage"):
                continue

            channel = msg.get("channel")
            if isinstance(channel, bytes):
                channel = channel.decode("utf-8")

            event = parse_event(channel or "", msg["data"])
            if event is None:
                continue

            try:
                await on_event(event)
            except Exception as e:
                logger.error("Error handling Redis message", error=str(e), exc_info=True)

    except asyncio.CancelledError:
        logger.info("Redis subscriber cancelled")
        raise
    finally:
        await pubsub.punsubscribe(pattern)
        await pubsub.aclose()
