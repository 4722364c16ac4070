"""
Core Event Publishing.

Publishing is best-effort and at-most-once: a single PUBLISH, no retry.
Callers decide what to do with the raised error.
"""

from __future__ import annotations

import redis

from shared.config.logging import get_logger
from .channels import channel_for_topic
from .event_schema import OrderEvent

logger = get_logger(__name__)


def publish_event(redis_client: redis.Redis, event: OrderEvent) -> int:
    """
    Publish an event on the channel of its topic.

    Returns:
        Number of subscribers that received the message.

    Raises:
        ValueError: If the event is too large.
        redis.RedisError: If Redis is unreachable.
    """
    channel = channel_for_topic(event.topic)
    receivers = redis_client.publish(channel, event.to_json())
    logger.debug(
        "Event published",
        channel=channel,
        event_type=event.type,
        receivers=receivers,
    )
    return receivers
