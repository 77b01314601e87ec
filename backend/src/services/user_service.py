"""Service layer for registration, login and profile lookups."""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from core.config import Settings
from core.errors import BadRequestError, NotFoundError
from core.security import (
    SessionClaim,
    create_access_token,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from models.user import User

logger = logging.getLogger(__name__)

# Same message for unknown e-mail and wrong password so accounts can't be enumerated.
INVALID_CREDENTIALS = "Invalid email or password"


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Look up a user by exact e-mail."""
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    settings: Settings,
    name: str | None,
    email: str | None,
    password: str | None,
) -> User:
    """
    Create a user account.

    Raises:
        BadRequestError: A field is missing, or the e-mail is already registered.
    """
    if not name or not email or not password:
        raise BadRequestError("Name, email, and password are required")

    if await get_user_by_email(db, email) is not None:
        raise BadRequestError("Email already registered")

    hashed = await run_in_threadpool(hash_password, password, settings.bcrypt_rounds)
    user = User(name=name, email=email, hashed_password=hashed)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration for the same e-mail.
        await db.rollback()
        raise BadRequestError("Email already registered") from e

    await db.refresh(user)
    logger.info("user_registered", extra={"user_id": user.id})
    return user


async def authenticate(
    db: AsyncSession,
    settings: Settings,
    email: str | None,
    password: str | None,
) -> tuple[str, User]:
    """
    Verify credentials and issue a bearer token.

    Returns:
        Tuple of (signed token, user).

    Raises:
        BadRequestError: A field is missing, or the credentials don't match.
    """
    if not email or not password:
        raise BadRequestError("Email and password are required")

    user = await get_user_by_email(db, email)
    if user is None:
        dummy = await run_in_threadpool(dummy_password_hash, settings.bcrypt_rounds)
        await run_in_threadpool(verify_password, password, dummy)
        raise BadRequestError(INVALID_CREDENTIALS)

    if not await run_in_threadpool(verify_password, password, user.hashed_password):
        raise BadRequestError(INVALID_CREDENTIALS)

    claim = SessionClaim(id=user.id, name=user.name, email=user.email)
    return create_access_token(claim, settings), user


async def get_profile(db: AsyncSession, claim: SessionClaim) -> User:
    """
    Load the user behind a verified claim.

    Raises:
        NotFoundError: The account no longer exists.
    """
    user = await db.get(User, claim.id)
    if user is None:
        raise NotFoundError("User not found")
    return user
