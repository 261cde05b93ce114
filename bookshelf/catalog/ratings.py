"""
Running rating aggregate for books.

Only ``total_votes`` and ``average_rating`` are stored, never the
individual votes, so each new vote folds into the mean incrementally:

    n' = n + 1
    a' = (a * n + rating) / n'

The read and the write are separate store calls. Two votes arriving at
the same time for the same book can both read the same ``(n, a)`` and
the later write then drops the other vote.
"""

import logging
from typing import Tuple

from .. import settings
from ..errors import InvalidArgument, NotFound
from .books import get_book_detail
from .schemas import BookDetail
from .store import BookStore


logger = logging.getLogger(__name__)


def running_mean(total_votes: int, average_rating: float, rating: int) -> Tuple[int, float]:
    """Return ``(total_votes, average_rating)`` after one more vote. No rounding."""
    new_total = total_votes + 1
    new_average = (average_rating * total_votes + rating) / new_total
    return new_total, new_average


def validate_rating(rating) -> int:
    if (
        isinstance(rating, bool)
        or not isinstance(rating, int)
        or not settings.MIN_RATING <= rating <= settings.MAX_RATING
    ):
        raise InvalidArgument(
            f"Rating must be between {settings.MIN_RATING} and {settings.MAX_RATING}"
        )
    return rating


def rate_book(store: BookStore, book_id: int, rating: int) -> BookDetail:
    """Record one vote for a book and return the refreshed book.

    Raises
    ------
    InvalidArgument
        If ``rating`` is not an integer in the accepted range. Checked
        before the store is touched.
    NotFound
        If the book does not exist.
    """
    rating = validate_rating(rating)

    book = store.find_book_by_id(book_id)
    if book is None:
        raise NotFound("Book not found")

    total_votes, average_rating = running_mean(book.total_votes, book.average_rating, rating)
    updated = store.update_book(
        book_id, {"total_votes": total_votes, "average_rating": average_rating}
    )
    if not updated:
        raise NotFound("Book not found")
    logger.debug(
        "Book %s rated %d: %d votes, average %s", book_id, rating, total_votes, average_rating
    )

    return get_book_detail(store, book_id)
