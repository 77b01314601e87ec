"""Tests for application configuration."""
import pytest
from pydantic import ValidationError

from core.config import DEFAULT_JWT_SECRET, Settings


class TestCorsOriginsParsing:
    """Tests for CORS origins parsing from environment variables."""

    def test_parse_single_origin_string(self) -> None:
        """Single origin string is parsed correctly."""
        settings = Settings(_env_file=None, cors_origins="http://localhost:5173")
        assert settings.cors_origins == ["http://localhost:5173"]

    def test_parse_multiple_origins_comma_separated(self) -> None:
        """Multiple comma-separated origins are parsed correctly."""
        settings = Settings(
            _env_file=None,
            cors_origins="http://localhost:5173,https://example.com",
        )
        assert settings.cors_origins == [
            "http://localhost:5173",
            "https://example.com",
        ]

    def test_parse_origins_with_whitespace(self) -> None:
        """Whitespace around origins is stripped."""
        settings = Settings(
            _env_file=None,
            cors_origins="  http://localhost:5173 , https://example.com  ",
        )
        assert settings.cors_origins == [
            "http://localhost:5173",
            "https://example.com",
        ]

    def test_parse_origins_list_passthrough(self) -> None:
        """List of origins is passed through unchanged."""
        origins = ["http://localhost:5173", "https://example.com"]
        settings = Settings(_env_file=None, cors_origins=origins)
        assert settings.cors_origins == origins

    def test_parse_trailing_comma(self) -> None:
        """Trailing comma is handled (empty entries filtered)."""
        settings = Settings(_env_file=None, cors_origins="http://localhost:5173,")
        assert settings.cors_origins == ["http://localhost:5173"]

    def test_parse_origins_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A comma-separated CORS_ORIGINS variable is split, not JSON-decoded."""
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com,https://b.example.com")
        settings = Settings(_env_file=None)
        assert settings.cors_origins == ["https://a.example.com", "https://b.example.com"]

    def test_default_cors_origins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Any origin is allowed by default."""
        monkeypatch.delenv("CORS_ORIGINS", raising=False)
        settings = Settings(_env_file=None)
        assert settings.cors_origins == ["*"]


class TestNewsProviderConfig:
    """Tests for the required provider key."""

    def test_missing_api_key_is_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Settings cannot be built without GNEWS_API_KEY."""
        monkeypatch.delenv("GNEWS_API_KEY", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_blank_api_key_is_rejected(self) -> None:
        """A whitespace-only key counts as missing."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, gnews_api_key="   ")

    def test_api_key_read_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The key is read from the environment and trimmed."""
        monkeypatch.setenv("GNEWS_API_KEY", " env-key ")
        settings = Settings(_env_file=None)
        assert settings.gnews_api_key == "env-key"


class TestAuthConfig:
    """Tests for JWT settings."""

    def test_default_secret_is_flagged(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Running without JWT_SECRET falls back to the built-in secret."""
        monkeypatch.delenv("JWT_SECRET", raising=False)
        settings = Settings(_env_file=None)
        assert settings.jwt_secret == DEFAULT_JWT_SECRET
        assert settings.uses_default_jwt_secret is True

    def test_custom_secret_is_not_flagged(self) -> None:
        """An explicit secret clears the flag."""
        settings = Settings(_env_file=None, jwt_secret="s3cret")
        assert settings.uses_default_jwt_secret is False

    def test_token_lifetime_defaults_to_one_hour(self) -> None:
        """Tokens expire after 60 minutes unless configured."""
        settings = Settings(_env_file=None)
        assert settings.access_token_expire_minutes == 60


class TestServerConfig:
    """Tests for listener and retry defaults."""

    def test_default_port(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The server listens on 5000 unless PORT is set."""
        monkeypatch.delenv("PORT", raising=False)
        assert Settings(_env_file=None).port == 5000

    def test_port_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """PORT overrides the default."""
        monkeypatch.setenv("PORT", "8080")
        assert Settings(_env_file=None).port == 8080

    def test_retry_policy_defaults(self) -> None:
        """Outbound calls get a bounded timeout and at most three attempts."""
        settings = Settings(_env_file=None)
        assert settings.upstream_timeout_seconds == 15.0
        assert settings.upstream_max_attempts == 3
        assert settings.upstream_deadline_seconds >= settings.upstream_timeout_seconds
