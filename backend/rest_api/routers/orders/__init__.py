"""
Order routers - /api/orders/*
Counter, queue screen and customer display endpoints.
"""

from .orders import router

__all__ = ["router"]
