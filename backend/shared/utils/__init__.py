"""
Utilities module: HTTP exceptions, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    UnauthorizedError,
    ForbiddenError,
    InsufficientRoleError,
)
from shared.utils.schemas import ErrorResponse

__all__ = [
    # exceptions
    "AppException",
    "UnauthorizedError",
    "ForbiddenError",
    "InsufficientRoleError",
    # schemas
    "ErrorResponse",
]
