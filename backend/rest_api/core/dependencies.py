"""
FastAPI dependencies shared by the order routers.

The queue notifier is built once in the lifespan and kept on app.state;
routers receive it through these functions so tests can override them.
"""

from fastapi import Depends, Request

from rest_api.services.events import OrderEventNotifier, QueueNotifier


def get_queue_notifier(request: Request) -> QueueNotifier:
    return request.app.state.queue_notifier


def get_order_event_notifier(
    notifier: QueueNotifier = Depends(get_queue_notifier),
) -> OrderEventNotifier:
    return OrderEventNotifier(notifier)
