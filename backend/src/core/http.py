"""Shared outbound HTTP client with bounded timeout and capped retry."""
import asyncio
import logging
from typing import Any

import httpx

from core.config import Settings

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; HeadlineHub/1.0)"

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class UpstreamTimeoutError(Exception):
    """Raised when the whole retry sequence exceeds its deadline."""

    pass


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Build the application-wide outbound client."""
    return httpx.AsyncClient(
        timeout=settings.upstream_timeout_seconds,
        headers={"User-Agent": USER_AGENT},
        http2=True,
    )


def is_retryable_status(status_code: int) -> bool:
    """5xx and 429 are worth another attempt; every other 4xx is a logical failure."""
    return status_code >= 500 or status_code == 429  # noqa: PLR2004


async def _attempt_loop(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    max_attempts: int,
    backoff_seconds: float,
    stream: bool,
    **kwargs: Any,
) -> httpx.Response:
    retryable = method.upper() in IDEMPOTENT_METHODS
    attempts = max_attempts if retryable else 1

    for attempt in range(1, attempts + 1):
        try:
            request = client.build_request(method, url, **kwargs)
            response = await client.send(request, stream=stream, follow_redirects=False)
        except httpx.TransportError as e:
            if attempt >= attempts:
                raise
            logger.warning(
                "upstream_retry",
                extra={"attempt": attempt, "reason": type(e).__name__},
            )
        else:
            if attempt >= attempts or not is_retryable_status(response.status_code):
                return response
            logger.warning(
                "upstream_retry",
                extra={"attempt": attempt, "reason": f"HTTP {response.status_code}"},
            )
            await response.aclose()

        await asyncio.sleep(backoff_seconds * 2 ** (attempt - 1))

    # Unreachable: the final attempt always returns or raises.
    raise RuntimeError("retry loop exited without a result")


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    settings: Settings,
    stream: bool = False,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send a request, retrying idempotent methods on transient failures.

    Retries happen on transport errors (connect failures, timeouts, resets)
    and on 5xx/429 responses, with exponential backoff starting at
    upstream_backoff_seconds, for at most upstream_max_attempts attempts.
    Non-idempotent methods are sent exactly once. The whole sequence is
    bounded by upstream_deadline_seconds.

    Args:
        client: Outbound client (owns the per-attempt timeout).
        method: HTTP method.
        url: Target URL.
        settings: Supplies the retry policy.
        stream: Return once headers arrive; the caller reads and closes the body.
            The deadline then covers only the wait for headers.
        **kwargs: Passed through to httpx.AsyncClient.build_request.

    Returns:
        The last response received. It may be a non-2xx response.
        Redirects are not followed.

    Raises:
        httpx.TransportError: The final attempt failed at the network level.
        UpstreamTimeoutError: The deadline elapsed.
    """
    try:
        return await asyncio.wait_for(
            _attempt_loop(
                client,
                method,
                url,
                max(1, settings.upstream_max_attempts),
                settings.upstream_backoff_seconds,
                stream,
                **kwargs,
            ),
            timeout=settings.upstream_deadline_seconds,
        )
    except TimeoutError as e:
        raise UpstreamTimeoutError(
            f"{method} {url} exceeded {settings.upstream_deadline_seconds}s deadline",
        ) from e
