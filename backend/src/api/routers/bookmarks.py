"""Bookmark endpoints, scoped to the authenticated user."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_claim
from core.security import SessionClaim
from schemas.bookmark import (
    BookmarkCreate,
    BookmarkDelete,
    BookmarkResponse,
    MessageResponse,
)
from services import bookmark_service

router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])


@router.post("", response_model=MessageResponse, status_code=201)
async def create_bookmark(
    data: BookmarkCreate | None = None,
    claim: SessionClaim = Depends(get_current_claim),
    db: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    """Save an article. Saving the same url twice returns 409."""
    data = data or BookmarkCreate()
    await bookmark_service.create_bookmark(
        db,
        claim.id,
        title=data.title,
        url=data.url,
        description=data.description,
        image=data.image,
        published_at=data.published_at,
        source=data.source,
    )
    return MessageResponse(message="Bookmark added")


@router.get("", response_model=list[BookmarkResponse])
async def list_bookmarks(
    claim: SessionClaim = Depends(get_current_claim),
    db: AsyncSession = Depends(get_async_session),
) -> list[BookmarkResponse]:
    """List the caller's bookmarks, newest first."""
    bookmarks = await bookmark_service.get_bookmarks(db, claim.id)
    return [BookmarkResponse.model_validate(b) for b in bookmarks]


@router.delete("", response_model=MessageResponse)
async def delete_bookmark(
    data: BookmarkDelete | None = None,
    claim: SessionClaim = Depends(get_current_claim),
    db: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    """Remove the caller's bookmark for a url."""
    data = data or BookmarkDelete()
    await bookmark_service.delete_bookmark(db, claim.id, data.url)
    return MessageResponse(message="Bookmark deleted")
