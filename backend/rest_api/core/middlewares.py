"""
HTTP middlewares for the FastAPI application.
Security headers, content-type validation and request correlation.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdMiddleware


CSP_DIRECTIVES = [
    "default-src 'self'",
    "script-src 'self'",
    "style-src 'self' 'unsafe-inline'",
    "img-src 'self' data:",
    "connect-src 'self'",
    "frame-ancestors 'none'",
    "base-uri 'self'",
    "form-action 'self'",
]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Headers added:
    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - Referrer-Policy: strict-origin-when-cross-origin
    - Permissions-Policy: no geolocation, microphone or camera
    - Content-Security-Policy
    - Strict-Transport-Security (production only)
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        response.headers["Content-Security-Policy"] = "; ".join(CSP_DIRECTIVES)
        if "server" in response.headers:
            del response.headers["server"]

        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class ContentTypeValidationMiddleware(BaseHTTPMiddleware):
    """
    Reject POST/PUT/PATCH bodies that are not JSON.

    Requests without a Content-Type (e.g. PATCH /deliver with no body) pass.
    Returns 415 Unsupported Media Type otherwise.
    """

    METHODS_WITH_BODY = {"POST", "PUT", "PATCH"}
    EXEMPT_PATHS = ("/api/health",)

    async def dispatch(self, request: Request, call_next):
        if request.method in self.METHODS_WITH_BODY and not request.url.path.startswith(
            self.EXEMPT_PATHS
        ):
            content_type = request.headers.get("content-type", "")
            if content_type and not content_type.startswith("application/json"):
                return JSONResponse(
                    status_code=415,
                    content={"detail": "Unsupported Media Type. Use application/json"},
                )
        return await call_next(request)


def register_middlewares(app: FastAPI) -> None:
    """
    Register the middlewares on the FastAPI application.

    Middlewares run in reverse order of registration: the correlation id
    is set first so every later log line carries it.
    """
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(ContentTypeValidationMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
