"""Tests for password hashing and token signing."""
from datetime import UTC, datetime, timedelta

from jose import jwt

from conftest import make_settings
from core.auth import extract_bearer_token
from core.security import (
    SessionClaim,
    create_access_token,
    decode_access_token,
    dummy_password_hash,
    hash_password,
    verify_password,
)

CLAIM = SessionClaim(id=7, name="Ada", email="ada@example.com")


class TestPasswordHashing:
    """Tests for bcrypt hashing helpers."""

    def test__hash_password__is_salted(self) -> None:
        """Hashing the same password twice gives different hashes."""
        first = hash_password("correct horse", rounds=4)
        second = hash_password("correct horse", rounds=4)
        assert first != second
        assert first.startswith("$2")

    def test__verify_password__accepts_matching_password(self) -> None:
        """The original password verifies."""
        hashed = hash_password("correct horse", rounds=4)
        assert verify_password("correct horse", hashed) is True

    def test__verify_password__rejects_other_password(self) -> None:
        """A different password does not verify."""
        hashed = hash_password("correct horse", rounds=4)
        assert verify_password("battery staple", hashed) is False


class TestAccessTokens:
    """Tests for signing and verifying bearer tokens."""

    def test__create_access_token__round_trips_claim(self) -> None:
        """A fresh token decodes to the same claim."""
        settings = make_settings()
        token = create_access_token(CLAIM, settings)
        assert decode_access_token(token, settings) == CLAIM

    def test__create_access_token__embeds_expiry_one_hour_after_issue(self) -> None:
        """exp is iat plus the configured lifetime."""
        settings = make_settings()
        token = create_access_token(CLAIM, settings)
        payload = jwt.get_unverified_claims(token)
        assert payload["exp"] - payload["iat"] == 3600
        assert payload["id"] == 7

    def test__decode_access_token__valid_just_before_expiry(self) -> None:
        """A token issued 59 minutes ago is accepted."""
        settings = make_settings()
        issued = datetime.now(UTC) - timedelta(minutes=59)
        token = create_access_token(CLAIM, settings, now=issued)
        assert decode_access_token(token, settings) == CLAIM

    def test__decode_access_token__rejects_expired_token(self) -> None:
        """A token issued 61 minutes ago is rejected."""
        settings = make_settings()
        issued = datetime.now(UTC) - timedelta(minutes=61)
        token = create_access_token(CLAIM, settings, now=issued)
        assert decode_access_token(token, settings) is None

    def test__decode_access_token__rejects_other_secret(self) -> None:
        """Tokens signed with a different secret are rejected."""
        token = create_access_token(CLAIM, make_settings(jwt_secret="other"))
        assert decode_access_token(token, make_settings()) is None

    def test__decode_access_token__rejects_garbage(self) -> None:
        """Non-JWT strings are rejected."""
        assert decode_access_token("not-a-token", make_settings()) is None

    def test__decode_access_token__rejects_payload_without_identity(self) -> None:
        """A correctly signed token missing the identity fields is rejected."""
        settings = make_settings()
        exp = datetime.now(UTC) + timedelta(minutes=5)
        token = jwt.encode({"sub": "7", "exp": exp}, settings.jwt_secret, algorithm="HS256")
        assert decode_access_token(token, settings) is None


class TestExtractBearerToken:
    """Tests for Authorization header parsing."""

    def test__extract_bearer_token__returns_second_part(self) -> None:
        """The token follows the scheme."""
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test__extract_bearer_token__missing_header(self) -> None:
        """No header means no token."""
        assert extract_bearer_token(None) is None
        assert extract_bearer_token("") is None

    def test__extract_bearer_token__scheme_only(self) -> None:
        """A lone scheme has no token."""
        assert extract_bearer_token("Bearer") is None


class TestDummyPasswordHash:
    """Tests for the hash used when no account matches."""

    def test__dummy_password_hash__is_cached_per_cost(self) -> None:
        """Repeated calls reuse one hash at the requested cost."""
        first = dummy_password_hash(rounds=4)
        assert dummy_password_hash(rounds=4) == first
        assert first.startswith("$2b$04$")

    def test__dummy_password_hash__rejects_ordinary_passwords(self) -> None:
        """Verifying against it fails for a typical password."""
        assert verify_password("correct horse", dummy_password_hash(rounds=4)) is False
