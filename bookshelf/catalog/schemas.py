"""
Pydantic schema definitions for the catalog module.

Rows mirror the columns of the ``books``, ``categories`` and ``comments``
tables. ``BookDetail`` is the projection returned whenever a route
answers with "the book": the book's own columns plus its category name
and the id/text of each of its comments. Request bodies are kept
separate from the rows so that server-assigned fields (ids, vote
counters, timestamps) cannot be supplied by clients.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt, field_validator


def _zero_if_null(value):
    """Rating columns are nullable in the database; a null aggregate means no votes."""
    return 0 if value is None else value


class Category(BaseModel):
    id: int
    name: str


class CategoryName(BaseModel):
    """Embedded category, as joined onto a book projection."""

    name: str


class Comment(BaseModel):
    """A single row of the ``comments`` table.

    ``comment_text`` is optional because the API accepts comments
    without any text; the value is stored exactly as submitted.
    """

    id: int
    book_id: int
    comment_text: Optional[str] = None
    created_at: Optional[datetime] = None


class CommentSummary(BaseModel):
    """Embedded comment, as joined onto a book projection."""

    id: int
    comment_text: Optional[str] = None


class Book(BaseModel):
    """A single row of the ``books`` table.

    ``total_votes`` and ``average_rating`` are the running rating
    aggregate maintained by ``ratings.rate_book``; individual ratings
    are never stored.
    """

    id: int
    category_id: Optional[int] = None
    title: str
    author: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    pages: Optional[int] = None
    year: Optional[int] = None
    total_votes: int = 0
    average_rating: float = 0.0
    age_range: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("total_votes", "average_rating", mode="before")
    @classmethod
    def no_votes_yet(cls, value):
        return _zero_if_null(value)


class BookDetail(BaseModel):
    """A book joined with its category and comments."""

    id: int
    title: str
    author: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    pages: Optional[int] = None
    year: Optional[int] = None
    total_votes: int = 0
    average_rating: float = 0.0
    # Named after the joined table, as the database returns it.
    categories: Optional[CategoryName] = None
    comments: List[CommentSummary] = Field(default_factory=list)
    age_range: Optional[str] = None

    @field_validator("total_votes", "average_rating", mode="before")
    @classmethod
    def no_votes_yet(cls, value):
        return _zero_if_null(value)


class CreateBookRequest(BaseModel):
    category_id: Optional[int] = None
    title: str
    author: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    pages: Optional[int] = None
    year: Optional[int] = None
    age_range: Optional[str] = None


class CreateCategoryRequest(BaseModel):
    name: str


class CommentRequest(BaseModel):
    """Body for creating or editing a comment. The text is not validated."""

    comment_text: Optional[str] = None


class RateRequest(BaseModel):
    # Strict so JSON true, "4" or 4.0 are refused instead of coerced.
    rating: StrictInt = Field(description="Integer vote between 1 and 5 inclusive")


class DeleteResult(BaseModel):
    success: bool = True
