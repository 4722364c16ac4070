"""
Authentication and authorization utilities.

Staff tokens are HS256 JWTs issued by the auth collaborator; this module
only verifies them. sign_jwt exists for tests and local tooling.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Header

from shared.config.constants import ORDER_PERMISSIONS
from shared.config.settings import (
    JWT_SECRET,
    JWT_ISSUER,
    JWT_AUDIENCE,
    settings,
)
from shared.config.logging import get_logger
from shared.utils.exceptions import UnauthorizedError, InsufficientRoleError

logger = get_logger(__name__)


# =============================================================================
# JWT Functions (staff authentication)
# =============================================================================


def sign_jwt(payload: dict[str, Any], ttl_seconds: int | None = None) -> str:
    """
    Sign an access token with the given claims.

    Args:
        payload: Claims to include in the token (sub, roles, email...).
        ttl_seconds: Token lifetime in seconds. Defaults to access token expiry.

    Returns:
        Signed JWT token string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": "access",
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a staff access token.

    Returns:
        Decoded token claims; "roles" is always a list.

    Raises:
        UnauthorizedError: If token is invalid, expired, or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError as e:
        # Real reason goes to the log, the client gets a generic message
        logger.warning("JWT validation failed", error=str(e))
        raise UnauthorizedError("Invalid token")

    if not payload.get("sub"):
        raise UnauthorizedError("Invalid token: missing subject claim")

    if payload.get("type", "access") != "access":
        raise UnauthorizedError("Invalid token: not an access token")

    roles = payload.get("roles", [])
    if not isinstance(roles, list):
        raise UnauthorizedError("Invalid token: malformed roles claim")

    payload["sub"] = str(payload["sub"])
    payload["roles"] = roles
    return payload


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        UnauthorizedError: If header is missing or malformed.
    """
    if not authorization:
        raise UnauthorizedError("Missing Authorization header")
    if not authorization.startswith("Bearer "):
        raise UnauthorizedError("Invalid Authorization header format. Expected: Bearer <token>")
    return authorization.split(" ", 1)[1].strip()


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """
    FastAPI dependency to get the current user context from JWT.

    Usage:
        @router.get("/orders")
        def list_orders(ctx: dict = Depends(current_user_context)):
            attendant_id = ctx["sub"]
            ...

    Returns:
        Dict with: sub (user id), roles, and any other claims
    """
    token = get_bearer_token(authorization)
    return verify_jwt(token)


def require_roles(ctx: dict[str, Any], allowed: list[str] | frozenset[str]) -> None:
    """
    Verify that the user has at least one of the allowed roles.

    Raises:
        InsufficientRoleError: If user lacks required role.
    """
    user_roles = set(ctx.get("roles", []))
    if not user_roles.intersection(allowed):
        raise InsufficientRoleError(sorted(allowed), user_id=ctx.get("sub"))


def require_permission(ctx: dict[str, Any], action: str) -> None:
    """
    Verify the user may perform an order action, per ORDER_PERMISSIONS.

    Usage:
        require_permission(ctx, OrderAction.CANCEL)
    """
    require_roles(ctx, ORDER_PERMISSIONS[action])


# =============================================================================
# WebSocket Authentication (token in query param)
# =============================================================================


def ws_auth_context(token: str | None) -> dict[str, Any] | None:
    """
    Verify a JWT passed as a WebSocket query parameter.

    Returns None instead of raising so the gateway can close the socket
    with a WebSocket close code.
    """
    if not token:
        return None
    try:
        return verify_jwt(token)
    except UnauthorizedError:
        return None
