"""News proxy endpoint."""
from typing import Any

import httpx
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from api.dependencies import get_http_client, get_request_settings
from core.config import Settings
from core.errors import BadRequestError
from schemas.news import NewsQuery
from services import news_service

router = APIRouter(prefix="/api", tags=["news"])

NEWS_QUERY_PARAMS = (
    "mode", "keyword", "date", "category", "source", "language", "country", "sortBy",
)


def parse_news_query(request: Request) -> NewsQuery:
    """
    Build a NewsQuery from the query string.

    Parameters sent empty are dropped so their defaults apply.
    """
    raw = {
        name: value
        for name in NEWS_QUERY_PARAMS
        if (value := request.query_params.get(name, "").strip())
    }
    try:
        return NewsQuery.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "query"
        raise BadRequestError(f"Invalid {field}: {first['msg']}", payload_key="error") from e


@router.get("/news")
async def get_news(
    query: NewsQuery = Depends(parse_news_query),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_request_settings),
) -> Any:
    """
    Relay top headlines or keyword search results from the news provider.

    The provider's JSON body is returned unchanged. Upstream error statuses
    are forwarded with a sanitized message.
    """
    return await news_service.fetch_news(client, settings, query)
