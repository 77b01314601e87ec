"""Service layer for bookmark operations, always scoped to the calling user."""
import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import BadRequestError, ConflictError, NotFoundError
from models.bookmark import Bookmark

logger = logging.getLogger(__name__)


DUPLICATE_MARKERS = (
    "uq_bookmark_user_url",
    "UNIQUE constraint failed: bookmarks.user_id, bookmarks.url",
)


def is_duplicate_bookmark_error(error: IntegrityError) -> bool:
    """True when the violation is the per-user url uniqueness constraint."""
    message = str(error.orig)
    return any(marker in message for marker in DUPLICATE_MARKERS)


async def create_bookmark(
    db: AsyncSession,
    user_id: int,
    title: str | None,
    url: str | None,
    description: str | None = None,
    image: str | None = None,
    published_at: datetime | None = None,
    source: str | None = None,
) -> Bookmark:
    """
    Save an article for the user.

    Uniqueness of (user_id, url) is enforced by the uq_bookmark_user_url
    constraint; a violation is reported as a conflict. Any other integrity
    error propagates.

    Raises:
        BadRequestError: title or url is missing.
        ConflictError: The user already bookmarked this url.
    """
    if not title or not url:
        raise BadRequestError("Title and URL are required")

    bookmark = Bookmark(
        user_id=user_id,
        title=title,
        url=url,
        description=description,
        image=image,
        published_at=published_at,
        source=source,
    )
    db.add(bookmark)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if not is_duplicate_bookmark_error(e):
            raise
        logger.info("bookmark_conflict", extra={"user_id": user_id})
        raise ConflictError("Bookmark already exists") from e

    await db.refresh(bookmark)
    return bookmark


async def get_bookmarks(db: AsyncSession, user_id: int) -> Sequence[Bookmark]:
    """All bookmarks of the user, most recently created first."""
    result = await db.execute(
        select(Bookmark)
        .where(Bookmark.user_id == user_id)
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc()),
    )
    return result.scalars().all()


async def delete_bookmark(db: AsyncSession, user_id: int, url: str | None) -> int:
    """
    Delete every bookmark of the user matching url.

    Returns:
        Number of rows deleted (at most one while the unique constraint holds).

    Raises:
        BadRequestError: url is missing.
        NotFoundError: Nothing matched.
    """
    if not url:
        raise BadRequestError("Bookmark URL required")

    result = await db.execute(
        delete(Bookmark).where(Bookmark.user_id == user_id, Bookmark.url == url),
    )
    await db.commit()
    if result.rowcount == 0:
        raise NotFoundError("Bookmark not found")
    return result.rowcount
