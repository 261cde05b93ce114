"""
Route definitions for the catalogue API.

Endpoints:
- GET    /books                : all books with category and comments
- GET    /books/{book_id}      : one book with category and comments
- POST   /books                : create a book
- POST   /books/{book_id}/comments : comment on a book (max 20 kept per book)
- POST   /books/{book_id}/rate : vote 1-5 for a book
- GET    /categories           : all categories
- POST   /categories           : create a category
- PUT    /comments/{comment_id}: edit a comment's text
- DELETE /comments/{comment_id}: delete a comment

Handlers are plain functions: FastAPI runs them in its threadpool, and
each one blocks on its store calls. Domain errors (``NotFound``,
``InvalidArgument``, ``StoreFailure``) propagate to the handlers
registered in ``bookshelf.main``.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request, status

from . import books, comments, ratings
from .schemas import (
    Book,
    BookDetail,
    Category,
    Comment,
    CommentRequest,
    CreateBookRequest,
    CreateCategoryRequest,
    DeleteResult,
    RateRequest,
)
from .store import BookStore


router = APIRouter(tags=["catalog"])


def get_store(request: Request) -> BookStore:
    """Return the store the application was created with."""
    return request.app.state.store


# ---------------------------------------------------------------------------
# Books

@router.get("/books", response_model=List[BookDetail])
def list_books(store: BookStore = Depends(get_store)) -> List[BookDetail]:
    return books.list_books(store)


@router.get("/books/{book_id}", response_model=BookDetail)
def get_book(book_id: int, store: BookStore = Depends(get_store)) -> BookDetail:
    return books.get_book_detail(store, book_id)


@router.post("/books", response_model=Book, status_code=status.HTTP_201_CREATED)
def create_book(req: CreateBookRequest, store: BookStore = Depends(get_store)) -> Book:
    return books.create_book(store, req)


@router.post(
    "/books/{book_id}/comments",
    response_model=BookDetail,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    book_id: int, req: CommentRequest, store: BookStore = Depends(get_store)
) -> BookDetail:
    """Add a comment and return the book with its current comments.

    When the book goes over its comment limit the oldest comment is
    removed.
    """
    return comments.add_comment(store, book_id, req.comment_text)


@router.post("/books/{book_id}/rate", response_model=BookDetail)
def rate_book(book_id: int, req: RateRequest, store: BookStore = Depends(get_store)) -> BookDetail:
    """Fold one vote into the book's ``average_rating`` and ``total_votes``."""
    return ratings.rate_book(store, book_id, req.rating)


# ---------------------------------------------------------------------------
# Categories

@router.get("/categories", response_model=List[Category])
def list_categories(store: BookStore = Depends(get_store)) -> List[Category]:
    return books.list_categories(store)


@router.post("/categories", response_model=Category, status_code=status.HTTP_201_CREATED)
def create_category(req: CreateCategoryRequest, store: BookStore = Depends(get_store)) -> Category:
    return books.create_category(store, req.name)


# ---------------------------------------------------------------------------
# Comments

@router.put("/comments/{comment_id}", response_model=Comment)
def edit_comment(
    comment_id: int, req: CommentRequest, store: BookStore = Depends(get_store)
) -> Comment:
    return comments.edit_comment(store, comment_id, req.comment_text)


@router.delete("/comments/{comment_id}", response_model=DeleteResult)
def delete_comment(comment_id: int, store: BookStore = Depends(get_store)) -> DeleteResult:
    comments.delete_comment(store, comment_id)
    return DeleteResult(success=True)
