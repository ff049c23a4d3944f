"""Security middleware."""

from collections.abc import Awaitable, Callable

from fastapi import Request
from fastapi.responses import Response
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from enrollment_service.config import get_settings


settings = get_settings()

# In-memory rate limiter keyed by client address
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


class SimpleSecurityMiddleware(BaseHTTPMiddleware):
    """Adds essential security headers to every response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Handle request with security headers."""
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


enrollment_rate_limit = limiter.limit(settings.ENROLLMENT_RATE_LIMIT)


def create_rate_limit_dependency(
    limit_decorator: Callable[[Callable], Callable],
) -> Callable[[Request], Awaitable[None]]:
    """Create rate limit dependencies from decorators.

    This allows applying rate limits at router level without modifying functions.
    """

    @limit_decorator
    async def rate_limited_dependency(request: Request) -> None:
        """Apply rate limiting to protect router endpoints."""

    return rate_limited_dependency


enrollment_route_limit = create_rate_limit_dependency(enrollment_rate_limit)
