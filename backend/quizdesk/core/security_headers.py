"""Security headers added to every API response."""

from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from quizdesk.core.config import settings

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"

# Responses under these paths carry tokens or answer choices
NO_STORE_PATHS = ("/student", "/authenticate", "/stauthenticate", "/teauthenticate")


def _is_no_store(path: str) -> bool:
    prefix = settings.API_PREFIX
    return any(path.startswith(prefix + p) for p in NO_STORE_PATHS)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        for name, value in BASE_HEADERS.items():
            response.headers.setdefault(name, value)
        if _is_no_store(request.url.path):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"
        if settings.ENV == "prod" and request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = HSTS_VALUE

        return response
