"""
Security module: staff JWT verification and role checks.
"""

from shared.security.auth import (
    sign_jwt,
    verify_jwt,
    get_bearer_token,
    current_user_context,
    require_roles,
    require_permission,
    ws_auth_context,
)

__all__ = [
    "sign_jwt",
    "verify_jwt",
    "get_bearer_token",
    "current_user_context",
    "require_roles",
    "require_permission",
    "ws_auth_context",
]
