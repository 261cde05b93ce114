"""
Data store interface for the catalogue API.

Routes and services never talk to a database directly: they receive a
``BookStore`` and call the handful of operations declared below. Two
implementations exist:

* ``InMemoryBookStore`` (this module) keeps everything in process-local
  lists. It backs the test-suite and local development when no database
  is configured.
* ``SupabaseBookStore`` (``supabase_store.py``) talks to the hosted
  Supabase database over its REST interface.

Every operation is a single read or write. Multi-step rules, such as
comment retention or the running rating mean, live in ``comments.py``
and ``ratings.py`` and are not atomic with respect to each other.
"""

from __future__ import annotations

import abc
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .schemas import Book, BookDetail, Category, CategoryName, Comment, CommentSummary


class BookStore(abc.ABC):
    """Operations the catalogue needs from its backing store."""

    @abc.abstractmethod
    def list_books(self) -> List[BookDetail]:
        """Return every book joined with its category and comments."""

    @abc.abstractmethod
    def find_book_by_id(self, book_id: int) -> Optional[Book]:
        """Return the bare book row, or ``None`` when it does not exist."""

    @abc.abstractmethod
    def find_book_with_relations(self, book_id: int) -> Optional[BookDetail]:
        """Return the book joined with its category and comments.

        Comments are ordered oldest first.
        """

    @abc.abstractmethod
    def insert_book(self, fields: Dict[str, Any]) -> Book:
        """Insert a book and return the stored row."""

    @abc.abstractmethod
    def update_book(self, book_id: int, fields: Dict[str, Any]) -> bool:
        """Apply ``fields`` to a book in one write.

        Returns ``False`` when no book has that id.
        """

    @abc.abstractmethod
    def list_categories(self) -> List[Category]:
        ...

    @abc.abstractmethod
    def insert_category(self, name: str) -> Category:
        ...

    @abc.abstractmethod
    def insert_comment(self, book_id: int, comment_text: Optional[str]) -> Comment:
        """Attach a comment to a book; the store assigns id and timestamp."""

    @abc.abstractmethod
    def list_comments_by_book(self, book_id: int) -> List[Comment]:
        """Return a book's comments ordered by creation time, oldest first.

        Comments sharing a timestamp are ordered by id (insertion order).
        """

    @abc.abstractmethod
    def find_comment_by_id(self, comment_id: int) -> Optional[Comment]:
        ...

    @abc.abstractmethod
    def update_comment(self, comment_id: int, comment_text: Optional[str]) -> Optional[Comment]:
        """Replace a comment's text; ``None`` when the comment does not exist."""

    @abc.abstractmethod
    def delete_comment(self, comment_id: int) -> bool:
        """Delete a comment; ``False`` when it did not exist."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _comment_order(comment: Comment):
    return (comment.created_at, comment.id)


class InMemoryBookStore(BookStore):
    """Process-local store holding books, categories and comments in lists.

    Each operation takes ``_lock`` so concurrent requests served from
    FastAPI's threadpool never see a half-updated list. Sequences of
    operations are not serialised, exactly like the hosted database.

    Parameters
    ----------
    clock : Callable[[], datetime], optional
        Source of comment creation timestamps. Defaults to the current
        UTC time.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or _utcnow
        self._lock = threading.Lock()
        self.books: List[Book] = []
        self.categories: List[Category] = []
        self.comments: List[Comment] = []
        self._next_book_id = 1
        self._next_category_id = 1
        self._next_comment_id = 1

    # -- books -------------------------------------------------------------

    def list_books(self) -> List[BookDetail]:
        with self._lock:
            return [self._detail(b) for b in self.books]

    def find_book_by_id(self, book_id: int) -> Optional[Book]:
        with self._lock:
            return self._book(book_id)

    def find_book_with_relations(self, book_id: int) -> Optional[BookDetail]:
        with self._lock:
            book = self._book(book_id)
            return self._detail(book) if book is not None else None

    def insert_book(self, fields: Dict[str, Any]) -> Book:
        with self._lock:
            book = Book(id=self._next_book_id, created_at=self._clock(), **fields)
            self.books.append(book)
            self._next_book_id += 1
            return book

    def update_book(self, book_id: int, fields: Dict[str, Any]) -> bool:
        with self._lock:
            for i, book in enumerate(self.books):
                if book.id == book_id:
                    self.books[i] = book.model_copy(update=fields)
                    return True
            return False

    # -- categories --------------------------------------------------------

    def list_categories(self) -> List[Category]:
        with self._lock:
            return list(self.categories)

    def insert_category(self, name: str) -> Category:
        with self._lock:
            category = Category(id=self._next_category_id, name=name)
            self.categories.append(category)
            self._next_category_id += 1
            return category

    # -- comments ----------------------------------------------------------

    def insert_comment(self, book_id: int, comment_text: Optional[str]) -> Comment:
        with self._lock:
            comment = Comment(
                id=self._next_comment_id,
                book_id=book_id,
                comment_text=comment_text,
                created_at=self._clock(),
            )
            self.comments.append(comment)
            self._next_comment_id += 1
            return comment

    def list_comments_by_book(self, book_id: int) -> List[Comment]:
        with self._lock:
            return self._comments_for(book_id)

    def find_comment_by_id(self, comment_id: int) -> Optional[Comment]:
        with self._lock:
            return next((c for c in self.comments if c.id == comment_id), None)

    def update_comment(self, comment_id: int, comment_text: Optional[str]) -> Optional[Comment]:
        with self._lock:
            for i, comment in enumerate(self.comments):
                if comment.id == comment_id:
                    updated = comment.model_copy(update={"comment_text": comment_text})
                    self.comments[i] = updated
                    return updated
            return None

    def delete_comment(self, comment_id: int) -> bool:
        with self._lock:
            before = len(self.comments)
            self.comments = [c for c in self.comments if c.id != comment_id]
            return len(self.comments) < before

    # -- helpers (caller holds the lock) -------------------------------------

    def _book(self, book_id: int) -> Optional[Book]:
        return next((b for b in self.books if b.id == book_id), None)

    def _comments_for(self, book_id: int) -> List[Comment]:
        return sorted(
            (c for c in self.comments if c.book_id == book_id), key=_comment_order
        )

    def _detail(self, book: Book) -> BookDetail:
        category = next((c for c in self.categories if c.id == book.category_id), None)
        return BookDetail(
            id=book.id,
            title=book.title,
            author=book.author,
            image_url=book.image_url,
            description=book.description,
            created_at=book.created_at,
            pages=book.pages,
            year=book.year,
            total_votes=book.total_votes,
            average_rating=book.average_rating,
            categories=CategoryName(name=category.name) if category else None,
            comments=[
                CommentSummary(id=c.id, comment_text=c.comment_text)
                for c in self._comments_for(book.id)
            ],
            age_range=book.age_range,
        )
