"""FastAPI dependencies for injection."""
import httpx
from fastapi import Request

from core.auth import get_current_claim, get_request_settings
from core.rate_limit_config import (
    RateLimitExceededError,
    RateLimitResult,
    get_operation_type,
)
from db.session import get_async_session


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared outbound client created at startup."""
    return request.app.state.http_client


def get_client_id(request: Request) -> str:
    """Identify the caller for rate limiting."""
    return request.client.host if request.client else "unknown"


async def check_rate_limit(request: Request) -> RateLimitResult | None:
    """
    Dependency that enforces rate limits.

    Stores the result in request.state for the middleware that adds headers.
    Raises RateLimitExceededError for 429 responses (handled by exception handler).
    """
    if not request.app.state.settings.rate_limit_enabled:
        return None

    operation_type = get_operation_type(request.method, request.url.path)
    result = await request.app.state.rate_limiter.check(
        get_client_id(request), operation_type,
    )

    if not result.allowed:
        raise RateLimitExceededError(result)

    request.state.rate_limit_info = {
        "limit": result.limit,
        "remaining": result.remaining,
        "reset": result.reset,
    }

    return result


__all__ = [
    "check_rate_limit",
    "get_async_session",
    "get_client_id",
    "get_current_claim",
    "get_http_client",
    "get_request_settings",
]
