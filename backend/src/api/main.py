"""FastAPI application entry point."""
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import check_rate_limit
from api.routers import auth, bookmarks, health, image_proxy, news
from core.config import Settings, get_settings
from core.errors import AppError
from core.http import create_http_client
from core.rate_limit_config import RateLimitExceededError
from core.rate_limiter import RedisRateLimiter
from db.session import create_engine, create_session_factory
from models import Base

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open and close the long-lived handles stored on app.state."""
    settings: Settings = app.state.settings

    if settings.create_tables_on_startup:
        async with app.state.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    app.state.http_client = create_http_client(settings)
    await app.state.rate_limiter.connect()
    logger.info("Server running on %s:%s", settings.host, settings.port)

    yield

    await app.state.http_client.aclose()
    await app.state.rate_limiter.close()
    await app.state.engine.dispose()


def _render_app_error(exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={exc.payload_key: exc.message})


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:  # noqa: ARG001
    """Render taxonomy errors as {payload_key: message}."""
    return _render_app_error(exc)


async def validation_error_handler(
    request: Request,  # noqa: ARG001
    exc: RequestValidationError,
) -> JSONResponse:
    """Malformed request bodies are a plain 400, not FastAPI's default 422."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first["loc"] if part != "body") or "body"
        message = f"Invalid {field}: {first['msg']}"
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


async def rate_limit_exceeded_handler(
    request: Request,  # noqa: ARG001
    exc: RateLimitExceededError,
) -> JSONResponse:
    """Return 429 with standard rate limit headers."""
    result = exc.result
    return JSONResponse(
        status_code=429,
        content={"message": "Rate limit exceeded. Please try again later."},
        headers={
            "Retry-After": str(result.retry_after),
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(result.reset),
        },
    )


async def catch_unhandled_errors(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Log anything that escaped the handlers and answer with a generic 500."""
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Server error"})


async def add_rate_limit_headers(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Copy the rate limit result stored by check_rate_limit onto the response."""
    response = await call_next(request)
    info = getattr(request.state, "rate_limit_info", None)
    if info:
        response.headers["X-RateLimit-Limit"] = str(info["limit"])
        response.headers["X-RateLimit-Remaining"] = str(info["remaining"])
        response.headers["X-RateLimit-Reset"] = str(info["reset"])
    return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    The engine, session factory and rate limiter are created
    here and kept on app.state; handlers reach them through dependencies.
    The outbound HTTP client is opened in the lifespan.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    if settings.uses_default_jwt_secret:
        logger.warning("JWT_SECRET is not set; tokens are signed with the built-in default")

    app = FastAPI(
        title="Headline Hub API",
        description="Accounts, article bookmarks and a CORS-friendly proxy for news and images.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = create_engine(settings)
    app.state.session_factory = create_session_factory(app.state.engine)
    app.state.rate_limiter = RedisRateLimiter(
        settings.redis_url, enabled=settings.redis_enabled,
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_handler)

    # Last added runs first: CORS wraps everything, including 500s.
    app.middleware("http")(add_rate_limit_headers)
    app.middleware("http")(catch_unhandled_errors)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    rate_limited = [Depends(check_rate_limit)]
    app.include_router(health.router)
    app.include_router(auth.router, dependencies=rate_limited)
    app.include_router(bookmarks.router, dependencies=rate_limited)
    app.include_router(news.router, dependencies=rate_limited)
    app.include_router(image_proxy.router, dependencies=rate_limited)

    return app
