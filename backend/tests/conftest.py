"""Shared fixtures: an app on in-memory SQLite with a stubbed news/image provider."""
import os
from collections.abc import AsyncGenerator, Callable

# Settings require the provider key; set it before the app modules are imported.
os.environ.setdefault("GNEWS_API_KEY", "test-api-key")

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from redis.asyncio import Redis  # noqa: E402
from redis.exceptions import RedisError  # noqa: E402

from api.main import create_app  # noqa: E402
from core.config import Settings  # noqa: E402
from core.rate_limiter import RedisRateLimiter  # noqa: E402
from models import Base  # noqa: E402

TEST_API_KEY = "test-api-key"
TEST_JWT_SECRET = "test-secret"
TEST_REDIS_URL = os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


class UpstreamStub:
    """
    Stand-in for every outbound HTTP call the app makes.

    Records requests; answers with `handler` if set, else an empty article list.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is not None:
            return self.handler(request)
        return httpx.Response(200, json={"totalArticles": 0, "articles": []})

    def respond_with(self, *responses: httpx.Response) -> None:
        """Answer with the given responses in order, repeating the last one."""
        queue = list(responses)

        def _next(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
            return queue.pop(0) if len(queue) > 1 else queue[0]

        self.handler = _next


def make_settings(**overrides: object) -> Settings:
    """Settings for tests; no .env file, no Redis, no backoff delay."""
    values: dict[str, object] = {
        "gnews_api_key": TEST_API_KEY,
        "gnews_base_url": "https://gnews.test/api/v4",
        "database_url": "sqlite+aiosqlite:///:memory:",
        "jwt_secret": TEST_JWT_SECRET,
        "bcrypt_rounds": 4,
        "redis_enabled": False,
        "upstream_backoff_seconds": 0,
        "image_proxy_block_private_networks": False,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    """Default test settings."""
    return make_settings()


@pytest.fixture
def upstream() -> UpstreamStub:
    """Stubbed upstream provider."""
    return UpstreamStub()


@pytest.fixture
async def app(settings: Settings, upstream: UpstreamStub) -> AsyncGenerator[FastAPI]:
    """
    Application with tables created and the outbound client routed to the stub.

    ASGITransport does not run the lifespan, so the handles it would open are
    set up here.
    """
    application = create_app(settings)
    async with application.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    application.state.http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))

    yield application

    await application.state.http_client.aclose()
    await application.state.engine.dispose()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Anonymous HTTP client for the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def register_and_login(
    client: AsyncClient,
    name: str = "Ada",
    email: str = "ada@example.com",
    password: str = "correct horse",
) -> dict[str, str]:
    """Create an account and return Authorization headers for it."""
    response = await client.post(
        "/api/register", json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    response = await client.post("/api/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
async def auth_headers(client: AsyncClient) -> dict[str, str]:
    """Authorization headers for a freshly registered user."""
    return await register_and_login(client)


@pytest.fixture
async def redis_server() -> AsyncGenerator[Redis]:
    """
    Raw connection to a scratch Redis database, flushed before each test.

    Skips when no Redis server is reachable at TEST_REDIS_URL.
    """
    raw = Redis.from_url(TEST_REDIS_URL, decode_responses=True)
    try:
        await raw.flushdb()
    except RedisError:
        await raw.aclose()
        pytest.skip(f"Redis not reachable at {TEST_REDIS_URL}")
    yield raw
    await raw.aclose()


@pytest.fixture
async def rate_limiter(redis_server: Redis) -> AsyncGenerator[RedisRateLimiter]:  # noqa: ARG001
    """Limiter connected to the scratch database."""
    limiter = RedisRateLimiter(TEST_REDIS_URL, enabled=True)
    await limiter.connect()
    yield limiter
    await limiter.close()
