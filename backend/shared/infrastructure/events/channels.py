"""
Redis Channel Naming.

One Redis channel per topic, all under the "pos:" prefix so the gateway
can pattern-subscribe to every topic at once.
"""

from __future__ import annotations

from .event_types import TOPICS, TOPIC_QUEUE, TOPIC_DISPLAY

CHANNEL_PREFIX = "pos:"
CHANNEL_PATTERN = f"{CHANNEL_PREFIX}*"


def channel_for_topic(topic: str) -> str:
    """Return the Redis channel for a topic, rejecting unknown topics."""
    if topic not in TOPICS:
        raise ValueError(f"Unknown topic '{topic}', expected one of {sorted(TOPICS)}")
    return f"{CHANNEL_PREFIX}{topic}"


def topic_from_channel(channel: str) -> str | None:
    """Inverse of channel_for_topic. Returns None for foreign channels."""
    if not channel.startswith(CHANNEL_PREFIX):
        return None
    topic = channel[len(CHANNEL_PREFIX):]
    return topic if topic in TOPICS else None


def channel_queue() -> str:
    """Channel read by the staff queue screens."""
    return channel_for_topic(TOPIC_QUEUE)


def channel_display() -> str:
    """Channel read by the public customer display."""
    return channel_for_topic(TOPIC_DISPLAY)
