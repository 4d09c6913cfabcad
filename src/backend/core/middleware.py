"""
HTTP middleware: security headers and development request logging.

Both are BaseHTTPMiddleware subclasses, which only see HTTP requests;
WebSocket traffic on /live passes through untouched.
"""

import time
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses.

    Implements OWASP security header recommendations:
    - X-Content-Type-Options: Prevents MIME type sniffing
    - X-Frame-Options: Prevents clickjacking attacks
    - Referrer-Policy: Controls referrer information
    - Content-Security-Policy: For API responses, restricts content loading

    The Content-Security-Policy is only sent outside development so the
    interactive docs keep working locally.
    """

    def __init__(self, app: Callable, enforce_csp: bool = True):
        super().__init__(app)
        self.enforce_csp = enforce_csp

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Add security headers to response."""
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if self.enforce_csp:
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        # State and admin data change with every vote
        if "Cache-Control" not in response.headers:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return response
