"""
Centralized constants for the backend application.
Avoids magic strings for roles, order statuses and payment methods.

Usage:
    from shared.config.constants import Roles, OrderStatus, ORDER_PERMISSIONS

    if status == OrderStatus.PENDING:
        ...
"""

from typing import Final


# =============================================================================
# Staff Roles
# =============================================================================


class Roles:
    """Staff role constants."""

    MASTER: Final[str] = "MASTER"
    ADMIN: Final[str] = "ADMIN"
    ATTENDANT: Final[str] = "ATTENDANT"

    ALL: Final[list[str]] = [MASTER, ADMIN, ATTENDANT]


MANAGEMENT_ROLES: Final[frozenset[str]] = frozenset({Roles.MASTER, Roles.ADMIN})
ALL_STAFF_ROLES: Final[frozenset[str]] = frozenset(Roles.ALL)


class OrderAction:
    """Actions a staff member can perform on orders."""

    CREATE: Final[str] = "create"
    READ: Final[str] = "read"
    PAY: Final[str] = "pay"
    DELIVER: Final[str] = "deliver"
    CANCEL: Final[str] = "cancel"


# Role table for order endpoints: action -> roles allowed to perform it
ORDER_PERMISSIONS: Final[dict[str, frozenset[str]]] = {
    OrderAction.CREATE: ALL_STAFF_ROLES,
    OrderAction.READ: ALL_STAFF_ROLES,
    OrderAction.PAY: ALL_STAFF_ROLES,
    OrderAction.DELIVER: ALL_STAFF_ROLES,
    OrderAction.CANCEL: MANAGEMENT_ROLES,
}


# =============================================================================
# Entity Status Constants
# =============================================================================


class OrderStatus:
    """Order status constants."""

    PENDING: Final[str] = "PENDING"
    READY: Final[str] = "READY"
    DELIVERED: Final[str] = "DELIVERED"
    CANCELLED: Final[str] = "CANCELLED"

    ALL: Final[list[str]] = [PENDING, READY, DELIVERED, CANCELLED]


class PaymentMethod:
    """Payment method constants."""

    CASH: Final[str] = "CASH"
    CREDIT_CARD: Final[str] = "CREDIT_CARD"
    DEBIT_CARD: Final[str] = "DEBIT_CARD"
    PIX: Final[str] = "PIX"

    ALL: Final[list[str]] = [CASH, CREDIT_CARD, DEBIT_CARD, PIX]


# =============================================================================
# Limits
# =============================================================================


class Limits:
    """Input limits shared by schemas and services."""

    MAX_ORDER_LINES: Final[int] = 50
    MAX_LINE_QUANTITY: Final[int] = 999
    MAX_CUSTOMER_NAME_LENGTH: Final[int] = 120

    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200
