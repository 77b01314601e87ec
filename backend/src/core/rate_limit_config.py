"""
Rate limiting configuration and types.

This module holds the policy (which limits apply to which requests),
separate from the enforcement logic in rate_limiter.py.

To adjust rate limits, modify RATE_LIMITS below.
To classify a new route as calling out to a third party, add it to UPSTREAM_ENDPOINTS.
"""
from dataclasses import dataclass
from enum import Enum


class OperationType(Enum):
    """Operation type for rate limiting."""

    READ = "read"
    WRITE = "write"
    UPSTREAM = "upstream"  # Requests that trigger a call to the news or image provider


@dataclass
class RateLimitConfig:
    """Rate limit configuration for one operation type."""

    requests_per_minute: int
    requests_per_day: int


@dataclass
class RateLimitResult:
    """Result of a rate limit check with all info needed for headers."""

    allowed: bool
    limit: int  # Max requests in current window
    remaining: int  # Requests remaining in current window
    reset: int  # Unix timestamp when window resets
    retry_after: int  # Seconds until retry allowed (0 if allowed)


class RateLimitExceededError(Exception):
    """Raised when rate limit is exceeded."""

    def __init__(self, result: RateLimitResult) -> None:
        self.result = result
        super().__init__("Rate limit exceeded")


# ---------------------------------------------------------------------------
# Rate Limit Policy Configuration
# ---------------------------------------------------------------------------
# Limits are per client address. Daily caps: general (read/write) and
# upstream are tracked separately; upstream calls spend the provider quota.

RATE_LIMITS: dict[OperationType, RateLimitConfig] = {
    OperationType.READ: RateLimitConfig(requests_per_minute=180, requests_per_day=4000),
    OperationType.WRITE: RateLimitConfig(requests_per_minute=60, requests_per_day=2000),
    OperationType.UPSTREAM: RateLimitConfig(requests_per_minute=30, requests_per_day=500),
}


# ---------------------------------------------------------------------------
# Upstream Endpoints
# ---------------------------------------------------------------------------
# Format: (HTTP_METHOD, path_without_query_params)

UPSTREAM_ENDPOINTS: set[tuple[str, str]] = {
    ("GET", "/api/news"),
    ("GET", "/api/image-proxy"),
    ("GET", "/api/ping"),
}


def get_operation_type(method: str, path: str) -> OperationType:
    """Determine operation type from HTTP method and path."""
    if (method, path) in UPSTREAM_ENDPOINTS:
        return OperationType.UPSTREAM
    if method == "GET":
        return OperationType.READ
    return OperationType.WRITE
