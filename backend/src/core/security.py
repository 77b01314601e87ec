"""Password hashing and bearer token signing."""
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from core.config import Settings

_pwd_contexts: dict[int, CryptContext] = {}


def _get_pwd_context(rounds: int) -> CryptContext:
    context = _pwd_contexts.get(rounds)
    if context is None:
        context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        _pwd_contexts[rounds] = context
    return context


def hash_password(password: str, rounds: int = 10) -> str:
    """Return a salted bcrypt hash of the password."""
    return _get_pwd_context(rounds).hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Check a plain password against a stored hash."""
    return _get_pwd_context(10).verify(plain, hashed)


_dummy_hashes: dict[int, str] = {}


def dummy_password_hash(rounds: int = 10) -> str:
    """A fixed hash to verify against when no account matches, so lookups cost the same."""
    hashed = _dummy_hashes.get(rounds)
    if hashed is None:
        hashed = hash_password("not-a-real-password", rounds)
        _dummy_hashes[rounds] = hashed
    return hashed


@dataclass(frozen=True)
class SessionClaim:
    """
    Identity carried inside a bearer token.

    Reconstructed from the token on every request; never stored server-side.
    """

    id: int
    name: str
    email: str


def create_access_token(
    claim: SessionClaim,
    settings: Settings,
    now: datetime | None = None,
) -> str:
    """
    Sign a token embedding the claim, expiring after access_token_expire_minutes.

    Args:
        claim: Identity to embed.
        settings: Supplies the secret, algorithm and lifetime.
        now: Issue time; defaults to the current UTC time.
    """
    issued_at = now or datetime.now(UTC)
    expire = issued_at + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {
        "id": claim.id,
        "name": claim.name,
        "email": claim.email,
        "iat": issued_at,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> SessionClaim | None:
    """Verify signature and expiry; return the claim, or None if the token is not valid."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None

    try:
        return SessionClaim(
            id=int(payload["id"]),
            name=str(payload["name"]),
            email=str(payload["email"]),
        )
    except (KeyError, TypeError, ValueError):
        return None
