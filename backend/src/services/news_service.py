"""Adapter between the internal news query vocabulary and the GNews API."""
import logging
from dataclasses import dataclass
from datetime import date as date_type
from typing import Any

import httpx

from core.config import Settings
from core.errors import BadRequestError, UpstreamError
from core.http import UpstreamTimeoutError, request_with_retry
from schemas.news import NewsQuery

logger = logging.getLogger(__name__)

KEYWORD_REQUIRED = "Keyword is required for search mode."
INVALID_DATE = "Invalid date: date must be formatted as YYYY-MM-DD"
UPSTREAM_FAILED = "News provider request failed"
FETCH_FAILED = "Failed to fetch news"


@dataclass
class UpstreamRequest:
    """A fully resolved call against the news provider."""

    url: str
    params: dict[str, str]


def _check_search_date(value: str) -> None:
    try:
        parsed = date_type.fromisoformat(value)
    except ValueError as e:
        raise BadRequestError(INVALID_DATE, payload_key="error") from e
    if parsed.isoformat() != value:
        raise BadRequestError(INVALID_DATE, payload_key="error")


def build_news_request(query: NewsQuery, settings: Settings) -> UpstreamRequest:
    """
    Map a NewsQuery onto GNews endpoint and query parameters.

    Pure function with no I/O.

    top-headlines: token, lang, country, topic (= category), source if given.
    search: token, lang, q (= keyword), sortby, and a full-day UTC from/to
    window when a date is given.

    Raises:
        BadRequestError: search mode without a keyword, or with a date that
            is not a real YYYY-MM-DD calendar day.
    """
    base_url = settings.gnews_base_url.rstrip("/")
    params: dict[str, str] = {
        "token": settings.gnews_api_key,
        "lang": query.language,
    }

    if query.mode == "top-headlines":
        params["country"] = query.country
        params["topic"] = query.category
        if query.source:
            params["source"] = query.source
        return UpstreamRequest(url=f"{base_url}/top-headlines", params=params)

    if not query.keyword:
        raise BadRequestError(KEYWORD_REQUIRED, payload_key="error")
    params["q"] = query.keyword
    if query.date:
        _check_search_date(query.date)
        params["from"] = f"{query.date}T00:00:00Z"
        params["to"] = f"{query.date}T23:59:59Z"
    params["sortby"] = query.sort_by
    return UpstreamRequest(url=f"{base_url}/search", params=params)


async def fetch_news(
    client: httpx.AsyncClient,
    settings: Settings,
    query: NewsQuery,
) -> Any:
    """
    Run one upstream call and return the provider's JSON body unchanged.

    Raises:
        BadRequestError: The query is incomplete (no outbound call is made).
        UpstreamError: Provider answered non-2xx (its status is forwarded),
            or the call failed at the network level (500).
    """
    upstream = build_news_request(query, settings)

    try:
        response = await request_with_retry(
            client, "GET", upstream.url, settings, params=upstream.params,
        )
    except (httpx.HTTPError, UpstreamTimeoutError) as e:
        logger.error(
            "news_upstream_error",
            extra={"mode": query.mode, "reason": type(e).__name__},
        )
        raise UpstreamError(FETCH_FAILED, payload_key="error") from e

    if not response.is_success:
        logger.error(
            "news_upstream_error",
            extra={
                "mode": query.mode,
                "status_code": response.status_code,
                "body": response.text[:1000],
            },
        )
        raise UpstreamError(
            UPSTREAM_FAILED, status_code=response.status_code, payload_key="error",
        )

    try:
        return response.json()
    except ValueError as e:
        logger.error("news_upstream_error", extra={"mode": query.mode, "reason": "invalid JSON"})
        raise UpstreamError(FETCH_FAILED, payload_key="error") from e


async def ping_provider(client: httpx.AsyncClient, settings: Settings) -> None:
    """
    Make a minimal top-headlines call to check the provider is reachable with our key.

    Raises:
        UpstreamError: With the upstream status or the network error as message.
    """
    upstream = build_news_request(NewsQuery(), settings)
    upstream.params["max"] = "1"
    try:
        response = await request_with_retry(
            client, "GET", upstream.url, settings, params=upstream.params,
        )
    except (httpx.HTTPError, UpstreamTimeoutError) as e:
        raise UpstreamError(f"{type(e).__name__}: provider unreachable", payload_key="error") from e

    if not response.is_success:
        raise UpstreamError(f"Provider responded with HTTP {response.status_code}", payload_key="error")
