"""Security headers middleware."""

from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add browser hardening headers; verification pages are never cached."""

    _HEADERS: dict[str, str] = {
        "Content-Security-Policy": "default-src 'self'; frame-ancestors 'none'; form-action 'self'",
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "no-referrer",
    }

    def __init__(self, app, no_store_prefixes: tuple[str, ...] = ()) -> None:
        """Initialize middleware with path prefixes whose responses must not be cached."""
        super().__init__(app)
        self._no_store_prefixes = no_store_prefixes

    async def dispatch(self, request: Request, call_next) -> Response:
        """Append security headers to all application responses."""
        response = await call_next(request)
        for header_name, header_value in self._HEADERS.items():
            response.headers[header_name] = header_value
        if request.url.path.startswith(self._no_store_prefixes):
            response.headers["Cache-Control"] = "no-store"
        return response
