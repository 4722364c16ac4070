"""
Order domain errors.

Plain exceptions, raised by the domain services and translated to HTTP
responses in rest_api.core.exception_handlers. Nothing here knows about
status codes.
"""

from __future__ import annotations

from typing import Any


class OrderDomainError(Exception):
    """Base class for order workflow errors."""

    code = "domain_error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class ValidationError(OrderDomainError):
    """
    Input rejected by a business rule.

    errors maps the offending field to its message, e.g.
    {"items[0].quantity": "must be greater than zero"}.
    """

    code = "validation_error"

    def __init__(self, detail: str, errors: dict[str, str] | None = None):
        self.errors = errors or {}
        super().__init__(detail)


class NotFoundError(OrderDomainError):
    """Order or product does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class InvalidStateError(OrderDomainError):
    """Operation not allowed in the entity's current state."""

    code = "invalid_state"

    def __init__(
        self,
        entity: str,
        current_state: str,
        expected_states: list[str] | None = None,
        detail: str | None = None,
    ):
        self.entity = entity
        self.current_state = current_state
        self.expected_states = expected_states or []
        if detail is None:
            if self.expected_states:
                detail = (
                    f"{entity} is '{current_state}', expected: {', '.join(self.expected_states)}"
                )
            else:
                detail = f"{entity} cannot be '{current_state}' for this operation"
        super().__init__(detail)


class InsufficientStockError(OrderDomainError):
    """A product does not have enough stock for the requested quantity."""

    code = "insufficient_stock"

    def __init__(self, product_id: str, product_name: str, available: int, requested: int):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for '{product_name}': available {available}, requested {requested}"
        )
