"""
Comment handling for books.

Each book keeps at most ``settings.COMMENT_LIMIT`` comments. Adding one
more evicts the single oldest comment (by creation time, then id). The
cap is enforced after the insert with no lock around the sequence, so
concurrent posts to the same book can briefly leave it over the limit
until the next post trims it.
"""

import logging
from typing import Optional

from .. import settings
from ..errors import NotFound
from .books import get_book_detail
from .schemas import BookDetail, Comment
from .store import BookStore


logger = logging.getLogger(__name__)


def add_comment(
    store: BookStore,
    book_id: int,
    comment_text: Optional[str],
    limit: Optional[int] = None,
) -> BookDetail:
    """Attach a comment to a book and enforce the retention cap.

    Parameters
    ----------
    store : BookStore
        Backing store.
    book_id : int
        Book receiving the comment. Must exist; nothing is written
        otherwise.
    comment_text : Optional[str]
        Stored exactly as given, including empty strings and ``None``.
    limit : Optional[int]
        Retention cap; defaults to ``settings.COMMENT_LIMIT``.

    Returns
    -------
    BookDetail
        The book re-read after the insert (and eviction, if any).

    Raises
    ------
    NotFound
        If the book does not exist.
    """
    if limit is None:
        limit = settings.COMMENT_LIMIT

    if store.find_book_by_id(book_id) is None:
        raise NotFound("Book not found")

    store.insert_comment(book_id, comment_text)

    comments = store.list_comments_by_book(book_id)
    if len(comments) > limit:
        oldest = comments[0]
        logger.info(
            "Book %s has %d comments (limit %d); evicting comment %s",
            book_id, len(comments), limit, oldest.id,
        )
        store.delete_comment(oldest.id)

    return get_book_detail(store, book_id)


def edit_comment(store: BookStore, comment_id: int, comment_text: Optional[str]) -> Comment:
    """Replace the text of an existing comment and return the updated row."""
    if store.find_comment_by_id(comment_id) is None:
        raise NotFound("Comment not found")
    updated = store.update_comment(comment_id, comment_text)
    if updated is None:
        # Deleted between the lookup and the update.
        raise NotFound("Comment not found")
    return updated


def delete_comment(store: BookStore, comment_id: int) -> None:
    if store.find_comment_by_id(comment_id) is None:
        raise NotFound("Comment not found")
    store.delete_comment(comment_id)

