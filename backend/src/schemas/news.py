"""Query model for the news proxy."""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

NewsMode = Literal["top-headlines", "search"]


class NewsQuery(BaseModel):
    """
    Internal news query vocabulary.

    Callers should omit parameters that were sent empty so defaults apply.
    Any mode other than top-headlines is a search. date is checked only
    when it is used, by the search request builder.
    """

    model_config = ConfigDict(populate_by_name=True)

    mode: NewsMode = "top-headlines"
    keyword: str | None = None
    date: str | None = None
    category: str = "general"
    source: str | None = None
    language: str = "en"
    country: str = "in"
    sort_by: str = Field(default="publishedAt", alias="sortBy")

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: object) -> object:
        return "top-headlines" if v == "top-headlines" else "search"
