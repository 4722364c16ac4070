"""
Event System for Real-time Notifications via Redis pub/sub.

This package provides:
- event_types.py: Event type and topic constants
- event_schema.py: OrderEvent envelope with validation
- channels.py: Channel naming functions
- redis_pool.py: Connection pool management
- health_checks.py: Redis health check functions
- publisher.py: Core publish_event
"""

from .event_types import (
    ORDER_READY,
    ORDER_DELIVERED,
    ORDER_CANCELLED,
    ORDER_EVENT_TYPES,
    TOPIC_QUEUE,
    TOPIC_DISPLAY,
    TOPICS,
    MAX_EVENT_SIZE,
)
from .event_schema import OrderEvent
from .channels import (
    CHANNEL_PATTERN,
    channel_for_topic,
    topic_from_channel,
    channel_queue,
    channel_display,
)
from .redis_pool import (
    get_redis_pool,
    get_redis_sync_client,
    close_redis_pool,
    close_redis_sync_client,
)
from .health_checks import (
    check_redis_async_health,
    check_redis_sync_health,
)
from .publisher import publish_event

__all__ = [
    # Event Types
    "ORDER_READY",
    "ORDER_DELIVERED",
    "ORDER_CANCELLED",
    "ORDER_EVENT_TYPES",
    "TOPIC_QUEUE",
    "TOPIC_DISPLAY",
    "TOPICS",
    "MAX_EVENT_SIZE",
    # Event Schema
    "OrderEvent",
    # Channels
    "CHANNEL_PATTERN",
    "channel_for_topic",
    "topic_from_channel",
    "channel_queue",
    "channel_display",
    # Redis Pool
    "get_redis_pool",
    "get_redis_sync_client",
    "close_redis_pool",
    "close_redis_sync_client",
    # Health Checks
    "check_redis_async_health",
    "check_redis_sync_health",
    # Core Publishing
    "publish_event",
]
