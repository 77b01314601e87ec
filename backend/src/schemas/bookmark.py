"""Pydantic schemas for bookmark endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class BookmarkCreate(BaseModel):
    """
    Schema for adding a bookmark.

    title and url are required by the service (400 with a fixed message),
    not by the schema, so that missing and empty values behave the same.
    publishedAt accepts any ISO-8601 timestamp; an empty string means unset.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = None
    url: str | None = None
    description: str | None = None
    image: str | None = None
    published_at: datetime | None = None
    source: str | None = None

    @field_validator("published_at", mode="before")
    @classmethod
    def blank_published_at_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class BookmarkDelete(BaseModel):
    """Schema for deleting a bookmark by URL."""

    url: str | None = None


class BookmarkResponse(BaseModel):
    """Schema for bookmark list items, serialized with camelCase keys."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: int
    user_id: int
    title: str
    description: str | None
    url: str
    image: str | None
    source: str | None
    published_at: datetime | None
    created_at: datetime


class MessageResponse(BaseModel):
    """Schema for endpoints that only acknowledge an action."""

    message: str
