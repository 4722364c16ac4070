"""
Centralized HTTP exceptions for authentication and authorization failures.

Order business rules raise the plain domain errors in
rest_api.services.domain.errors; these are only for the HTTP edge.

Usage:
    from shared.utils.exceptions import UnauthorizedError, InsufficientRoleError

    raise UnauthorizedError("Token expired")
    raise InsufficientRoleError(["ADMIN", "MASTER"])
"""

from fastapi import HTTPException, status
from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom HTTP exceptions inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 401 Unauthorized Errors
# =============================================================================


class UnauthorizedError(AppException):
    """
    Missing or invalid credentials (401).

    Usage:
        raise UnauthorizedError("Missing bearer token")
    """

    def __init__(self, detail: str = "Not authenticated", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            log_level="warning",
            headers={"WWW-Authenticate": "Bearer"},
            **log_context,
        )


# =============================================================================
# 403 Forbidden Errors
# =============================================================================


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("cancel orders")
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        if action:
            detail = f"Not allowed to {action}"
        else:
            detail = "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            action=action,
            **log_context,
        )


class InsufficientRoleError(ForbiddenError):
    """User doesn't have the required role."""

    def __init__(self, required_roles: list[str], **log_context: Any):
        roles_str = ", ".join(required_roles)
        super().__init__(
            f"perform this action (requires role: {roles_str})",
            required_roles=required_roles,
            **log_context,
        )

