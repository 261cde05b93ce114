"""
Book and category operations that are straight pass-throughs to the store.
"""

from typing import List

from ..errors import NotFound
from .schemas import Book, BookDetail, Category, CreateBookRequest
from .store import BookStore

DEFAULT_PAGES = 0
DEFAULT_YEAR = 2000


def list_books(store: BookStore) -> List[BookDetail]:
    return store.list_books()


def get_book_detail(store: BookStore, book_id: int) -> BookDetail:
    """Return the book joined with its category and comments, or raise ``NotFound``."""
    book = store.find_book_with_relations(book_id)
    if book is None:
        raise NotFound("Book not found")
    return book


def create_book(store: BookStore, req: CreateBookRequest) -> Book:
    """Insert a book. Missing (or zero) ``pages``/``year`` get the catalogue defaults."""
    fields = req.model_dump()
    fields["pages"] = req.pages or DEFAULT_PAGES
    fields["year"] = req.year or DEFAULT_YEAR
    # Let the database apply its own default rather than storing null.
    if fields.get("age_range") is None:
        fields.pop("age_range", None)
    return store.insert_book(fields)


def list_categories(store: BookStore) -> List[Category]:
    return store.list_categories()


def create_category(store: BookStore, name: str) -> Category:
    return store.insert_category(name)
