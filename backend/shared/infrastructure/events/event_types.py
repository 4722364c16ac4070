"""
Event Type Constants.

Message types pushed to staff queue screens and customer displays.
"""

from __future__ import annotations

# =============================================================================
# Order lifecycle
# =============================================================================

ORDER_READY = "order.ready"
ORDER_DELIVERED = "order.delivered"
ORDER_CANCELLED = "order.cancelled"

ORDER_EVENT_TYPES = frozenset({ORDER_READY, ORDER_DELIVERED, ORDER_CANCELLED})

# =============================================================================
# Topics
# =============================================================================

TOPIC_QUEUE = "queue"  # Staff queue screens
TOPIC_DISPLAY = "display"  # Public customer display

TOPICS = frozenset({TOPIC_QUEUE, TOPIC_DISPLAY})

# =============================================================================
# Size limits
# =============================================================================

# Maximum serialized event size (64 KB)
MAX_EVENT_SIZE = 64 * 1024
