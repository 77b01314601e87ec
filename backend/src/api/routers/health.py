"""Health check and provider reachability endpoints."""
import logging

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import check_rate_limit, get_http_client, get_request_settings
from core.config import Settings
from core.errors import UpstreamError
from db.session import get_async_session
from services.news_service import ping_provider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    redis: str


class PingResponse(BaseModel):
    """News provider reachability response."""

    status: str
    provider: str


async def check_redis_health(request: Request) -> str:
    """Check Redis connectivity. Returns 'connected' or 'unavailable'."""
    if await request.app.state.rate_limiter.ping():
        return "connected"
    return "unavailable"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
) -> HealthResponse:
    """
    Check application and database health.

    Note: App returns 'healthy' even if Redis is unavailable (degraded mode).
    Redis unavailability only disables rate limiting.
    """
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        db_status = "unhealthy"

    redis_status = await check_redis_health(request)

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        database=db_status,
        redis=redis_status,
    )


@router.get("/api/ping", response_model=PingResponse, dependencies=[Depends(check_rate_limit)])
async def ping(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_request_settings),
) -> PingResponse | JSONResponse:
    """Check the news provider is reachable with the configured API key."""
    try:
        await ping_provider(client, settings)
    except UpstreamError as e:
        logger.warning("provider_ping_failed", extra={"detail": e.message})
        return JSONResponse(
            status_code=500,
            content={"error": "News provider unreachable", "detail": e.message},
        )
    return PingResponse(status="ok", provider="reachable")
