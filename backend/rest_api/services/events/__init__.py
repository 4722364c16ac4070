"""
Event Services - Real-time notification of order state changes.

Provides:
- QueueNotifier transports (Redis, null) selected at startup
- OrderEventNotifier building order.ready / order.delivered / order.cancelled
"""

from .queue_notifier import (
    QueueNotifier,
    RedisQueueNotifier,
    NullQueueNotifier,
    OrderEventNotifier,
    build_queue_notifier,
)

__all__ = [
    "QueueNotifier",
    "RedisQueueNotifier",
    "NullQueueNotifier",
    "OrderEventNotifier",
    "build_queue_notifier",
]
