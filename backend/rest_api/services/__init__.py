"""
Services module for business logic.

CLEAN ARCHITECTURE:
- domain/: Application services for the order workflow - USE THESE
- events/: Real-time notification of order state changes

Usage:
    from rest_api.services.domain import SettlementService
    service = SettlementService(db, notifier)
    order = service.settle_payment(order_id, payment_request)
"""
