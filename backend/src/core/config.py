"""Application configuration using pydantic-settings."""
from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_JWT_SECRET = "defaultsecret"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # News provider (GNews). Required - the app refuses to start without it.
    gnews_api_key: str
    gnews_base_url: str = "https://gnews.io/api/v4"

    # Database
    database_url: str = "sqlite+aiosqlite:///./headline_hub.db"
    create_tables_on_startup: bool = True

    # Auth
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    bcrypt_rounds: int = 10

    # Outbound HTTP (news + image proxy)
    upstream_timeout_seconds: float = 15.0
    upstream_max_attempts: int = 3
    upstream_backoff_seconds: float = 0.5
    upstream_deadline_seconds: float = 45.0

    # Image proxy
    image_proxy_max_bytes: int = 10 * 1024 * 1024
    image_proxy_block_private_networks: bool = True

    # CORS - comma-separated string or list
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    # Redis / rate limiting
    redis_url: str = "redis://localhost:6379"
    redis_enabled: bool = False
    rate_limit_enabled: bool = True

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000

    @field_validator("gnews_api_key")
    @classmethod
    def require_api_key(cls, v: str) -> str:
        """Reject an empty API key."""
        if not v or not v.strip():
            raise ValueError("GNEWS_API_KEY is not set")
        return v.strip()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def uses_default_jwt_secret(self) -> bool:
        """True when tokens are signed with the built-in fallback secret."""
        return self.jwt_secret == DEFAULT_JWT_SECRET


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
