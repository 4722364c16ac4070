"""
Domain Services - Clean Architecture Application Layer.

Services contain business logic and orchestrate operations.
They use Repositories for data access and notify display screens.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import OrderService

    # In router
    service = OrderService(db, notifier)
    order = service.create(body, attendant_id=ctx["sub"])
"""

from .errors import (
    OrderDomainError,
    ValidationError,
    NotFoundError,
    InvalidStateError,
    InsufficientStockError,
)
from .order_service import OrderService
from .settlement_service import SettlementService
from .order_query_service import OrderQueryService
from .receipt_service import ReceiptService
from .stock_ledger import StockLedger

__all__ = [
    # Errors
    "OrderDomainError",
    "ValidationError",
    "NotFoundError",
    "InvalidStateError",
    "InsufficientStockError",
    # Services
    "OrderService",
    "SettlementService",
    "OrderQueryService",
    "ReceiptService",
    "StockLedger",
]
