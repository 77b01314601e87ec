"""Bearer token gate for protected routes."""
import logging

from fastapi import Depends, Request

from core.config import Settings
from core.errors import ForbiddenError, UnauthenticatedError
from core.security import SessionClaim, decode_access_token

logger = logging.getLogger(__name__)


def get_request_settings(request: Request) -> Settings:
    """Settings the running application was built with."""
    return request.app.state.settings


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token part of an `Authorization: Bearer <token>` header, if any."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) < 2:  # noqa: PLR2004
        return None
    return parts[1]


async def get_current_claim(
    request: Request,
    settings: Settings = Depends(get_request_settings),
) -> SessionClaim:
    """
    Verify the bearer token and attach the decoded claim to request.state.

    Raises:
        UnauthenticatedError: No token in the Authorization header (401).
        ForbiddenError: Token signature, expiry or payload is invalid (403).
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise UnauthenticatedError("No token provided")

    claim = decode_access_token(token, settings)
    if claim is None:
        logger.info("invalid_token", extra={"path": request.url.path})
        raise ForbiddenError("Invalid token")

    request.state.claim = claim
    return claim
