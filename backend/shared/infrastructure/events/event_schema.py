"""
Event Schema.

Defines the OrderEvent envelope sent to display channels.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Any

from .event_types import TOPICS, MAX_EVENT_SIZE


@dataclass
class OrderEvent:
    """
    Envelope for every message published to a display channel.

    The 'data' field carries the event-specific payload: the full order for
    order.ready, {order_id, ticket_number} for delivery and cancellation.
    """

    type: str
    topic: str
    data: dict[str, Any] = field(default_factory=dict)
    ts: str | None = None
    v: int = 1  # Schema version for future compatibility

    def __post_init__(self) -> None:
        """Reject malformed events before they reach Redis."""
        if not self.type or not isinstance(self.type, str):
            raise ValueError("Event type must be a non-empty string")

        if self.topic not in TOPICS:
            raise ValueError(f"Event topic must be one of {sorted(TOPICS)}, got '{self.topic}'")

        if not isinstance(self.data, dict):
            raise ValueError("Event data must be a dict")

        if self.ts is None:
            self.ts = datetime.now(timezone.utc).isoformat()

    def to_json(self) -> str:
        """Serialize event to JSON string, enforcing the size limit."""
        payload = json.dumps(asdict(self), ensure_ascii=False, default=str)
        size = len(payload.encode("utf-8"))
        if size > MAX_EVENT_SIZE:
            raise ValueError(
                f"Event {self.type} exceeds max size: {size} > {MAX_EVENT_SIZE} bytes"
            )
        return payload

    @classmethod
    def from_json(cls, json_str: str) -> "OrderEvent":
        """Deserialize event from JSON string. Validation runs in __post_init__."""
        data = json.loads(json_str)
        return cls(**data)
