"""Image relay: fetch a remote image server-side and hand back its bytes."""
import asyncio
import ipaddress
import logging
import socket
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

from core.config import Settings
from core.errors import BadRequestError, UpstreamError
from core.http import UpstreamTimeoutError, request_with_retry

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/jpeg"
ALLOWED_SCHEMES = ("http", "https")

MAX_REDIRECTS = 5

FETCH_FAILED = "Failed to fetch image"


class SSRFBlockedError(Exception):
    """Raised when a URL targets a private/internal network address."""

    pass


@dataclass
class ImagePayload:
    """Bytes and media type relayed to the caller."""

    content: bytes
    content_type: str


def is_private_ip(ip_str: str) -> bool:
    """
    Check if an IP address is private, loopback, or otherwise internal.

    Unparseable addresses count as private.
    """
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        return True
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_reserved
        or ip.is_unspecified
    )


class HostResolutionError(Exception):
    """Raised when a URL's hostname does not resolve."""

    pass


async def resolve_host(hostname: str) -> list[str]:
    """
    Resolve a hostname to the IP addresses it points at.

    Raises:
        HostResolutionError: DNS lookup failed.
    """
    loop = asyncio.get_running_loop()
    try:
        addrinfo = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise HostResolutionError(f"Could not resolve hostname: {hostname}") from e
    return [sockaddr[0] for _, _, _, _, sockaddr in addrinfo]


async def validate_url_not_private(url: str) -> None:
    """
    Validate that a URL does not target a private/internal network.

    Resolves the hostname so a public name pointing at an internal address
    is caught too.

    Raises:
        SSRFBlockedError: The URL targets a private network.
        ValueError: The URL is malformed or uses a scheme other than http(s).
        HostResolutionError: The hostname does not resolve.
    """
    parsed = urlparse(url)
    hostname = parsed.hostname

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Unsupported URL scheme: {parsed.scheme!r}")
    if not hostname:
        raise ValueError(f"Invalid URL (no hostname): {url}")

    if hostname.lower() in ("localhost", "localhost.localdomain"):
        raise SSRFBlockedError(f"Blocked request to localhost: {url}")

    for ip_str in await resolve_host(hostname):
        if is_private_ip(ip_str):
            raise SSRFBlockedError(
                f"Blocked request to private/internal address: {url} resolves to {ip_str}",
            )


def _is_acceptable_content_type(content_type: str) -> bool:
    main_type = content_type.split(";", 1)[0].strip().lower()
    return main_type.startswith("image/") or main_type == "application/octet-stream"


async def _guard_target(url: str, is_redirect: bool) -> None:
    """
    Refuse internal targets before any request is sent to them.

    The caller's own URL is refused with 400; a redirect hop or an
    unresolvable host is a fetch failure (500).
    """
    try:
        await validate_url_not_private(url)
    except (SSRFBlockedError, ValueError) as e:
        logger.warning(
            "image_proxy_blocked",
            extra={"reason": str(e), "redirect": is_redirect},
        )
        if is_redirect:
            raise UpstreamError(FETCH_FAILED) from e
        raise BadRequestError("Image URL not allowed") from e
    except HostResolutionError as e:
        logger.warning("image_proxy_failed", extra={"reason": str(e)})
        raise UpstreamError(FETCH_FAILED) from e


async def _open_stream(
    client: httpx.AsyncClient,
    settings: Settings,
    url: str,
) -> httpx.Response:
    try:
        return await request_with_retry(client, "GET", url, settings, stream=True)
    except (httpx.HTTPError, UpstreamTimeoutError) as e:
        logger.warning("image_proxy_failed", extra={"reason": type(e).__name__})
        raise UpstreamError(FETCH_FAILED) from e


async def _read_capped(response: httpx.Response, max_bytes: int) -> bytes:
    """
    Read a streamed body, giving up as soon as it exceeds max_bytes.

    Raises:
        UpstreamError: Declared or actual size over the cap, or the read failed.
    """
    declared = response.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        logger.warning(
            "image_proxy_failed",
            extra={"reason": f"Image too large: {declared} bytes declared"},
        )
        raise UpstreamError(FETCH_FAILED)

    chunks: list[bytes] = []
    total = 0
    try:
        async for chunk in response.aiter_bytes():
            total += len(chunk)
            if total > max_bytes:
                logger.warning(
                    "image_proxy_failed",
                    extra={"reason": f"Image too large: over {max_bytes} bytes"},
                )
                raise UpstreamError(FETCH_FAILED)
            chunks.append(chunk)
    except httpx.HTTPError as e:
        logger.warning("image_proxy_failed", extra={"reason": type(e).__name__})
        raise UpstreamError(FETCH_FAILED) from e
    return b"".join(chunks)


async def fetch_image(
    client: httpx.AsyncClient,
    settings: Settings,
    url: str | None,
) -> ImagePayload:
    """
    Fetch an image for relaying.

    Redirects are followed one hop at a time (at most MAX_REDIRECTS), and
    with private-network blocking on, every hop is checked before it is
    requested. The body is streamed and abandoned once it passes
    image_proxy_max_bytes.

    Args:
        client: Shared outbound client.
        settings: Supplies the size cap and the private-network switch.
        url: Remote image URL from the caller.

    Returns:
        ImagePayload with the raw bytes and upstream Content-Type
        (image/jpeg when upstream sent none).

    Raises:
        BadRequestError: url missing, or not allowed (400).
        UpstreamError: Any fetch failure (500, detail only in logs).
    """
    if not url:
        raise BadRequestError("Missing image URL")

    target = url
    for hop in range(MAX_REDIRECTS + 1):
        if settings.image_proxy_block_private_networks:
            await _guard_target(target, is_redirect=hop > 0)
        response = await _open_stream(client, settings, target)
        if response.next_request is None:
            break
        target = str(response.next_request.url)
        await response.aclose()
    else:
        logger.warning("image_proxy_failed", extra={"reason": "Too many redirects"})
        raise UpstreamError(FETCH_FAILED)

    try:
        if not response.is_success:
            logger.warning("image_proxy_failed", extra={"reason": f"HTTP {response.status_code}"})
            raise UpstreamError(FETCH_FAILED)

        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        if not _is_acceptable_content_type(content_type):
            logger.warning(
                "image_proxy_failed",
                extra={"reason": f"Non-image content type: {content_type}"},
            )
            raise UpstreamError(FETCH_FAILED)

        content = await _read_capped(response, settings.image_proxy_max_bytes)
    finally:
        await response.aclose()

    return ImagePayload(content=content, content_type=content_type)
