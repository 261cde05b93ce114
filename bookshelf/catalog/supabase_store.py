"""
Supabase-backed implementation of ``BookStore``.

Supabase exposes every table of the project database through
PostgREST at ``{SUPABASE_URL}/rest/v1/{table}``. This module issues
plain HTTP requests against that interface with ``urllib``:

* reads are ``GET`` requests with ``select``, ``eq.`` filters and
  ``order`` parameters; related rows are embedded with the
  ``categories(name)`` and ``comments(id,comment_text)`` syntax;
* writes (``POST``, ``PATCH``, ``DELETE``) send
  ``Prefer: return=representation`` so the affected rows come back in
  the response body, which tells us whether anything matched.

Unlike a best-effort metadata lookup, a failing store call is never
turned into an empty result: it is logged and raised as
``StoreFailure`` so the request fails visibly.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import StoreFailure
from .schemas import Book, BookDetail, Category, Comment
from .store import BookStore


logger = logging.getLogger(__name__)

BOOK_DETAIL_COLUMNS = (
    "id,title,author,image_url,description,created_at,pages,year,"
    "total_votes,average_rating,categories(name),comments(id,comment_text),age_range"
)
COMMENT_ORDER = "created_at.asc,id.asc"

Params = Sequence[Tuple[str, str]]
ModelT = TypeVar("ModelT", bound=BaseModel)


def _eq(value: Any) -> str:
    return f"eq.{value}"


def _parse(model: Type[ModelT], row: Any, table: str) -> ModelT:
    """Validate one row, reporting a mismatched row as a store failure."""
    try:
        return model.model_validate(row)
    except ValidationError as exc:
        logger.error("Supabase row from %s does not match %s: %s", table, model.__name__, exc)
        raise StoreFailure(f"Unexpected row shape from {table}") from exc


class SupabaseBookStore(BookStore):
    """Store that reads and writes the hosted Supabase tables.

    Parameters
    ----------
    url : str
        Project URL, e.g. ``https://xyzcompany.supabase.co``.
    key : str
        Service role key. Sent both as ``apikey`` and as a bearer token.
    timeout : float
        Socket timeout in seconds for every request.
    """

    def __init__(self, url: str, key: str, timeout: float = 10.0):
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.key = key
        self.timeout = timeout

    # -- transport -----------------------------------------------------------

    def _request(
        self,
        method: str,
        table: str,
        params: Params = (),
        body: Optional[Any] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """Send one request to PostgREST and return the decoded JSON body.

        Returns ``None`` when the response has no body. Any transport
        error, non-2xx status or undecodable payload raises
        ``StoreFailure``.
        """
        url = f"{self.base_url}/{table}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(list(params))}"
        headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Accept": "application/json",
        }
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        if prefer:
            headers["Prefer"] = prefer
        request = urllib.request.Request(url, data=data, headers=headers, method=method)
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                raw = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            message = _error_message(exc)
            logger.error("Supabase %s %s failed with status %s: %s", method, table, exc.code, message)
            raise StoreFailure(message) from exc
        except OSError as exc:
            logger.error("Supabase %s %s failed: %s", method, table, exc)
            raise StoreFailure(f"Database unreachable: {exc}") from exc
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.error("Supabase %s %s returned invalid JSON", method, table)
            raise StoreFailure("Invalid response from database") from exc

    def _select(self, table: str, params: Params) -> List[Dict[str, Any]]:
        return self._request("GET", table, params) or []

    def _write(self, method: str, table: str, params: Params = (), body: Any = None) -> List[Dict[str, Any]]:
        return self._request(method, table, params, body, prefer="return=representation") or []

    # -- books -----------------------------------------------------------------

    def list_books(self) -> List[BookDetail]:
        rows = self._select(
            "books",
            [("select", BOOK_DETAIL_COLUMNS), ("comments.order", COMMENT_ORDER), ("order", "id.asc")],
        )
        return [_parse(BookDetail, row, "books") for row in rows]

    def find_book_by_id(self, book_id: int) -> Optional[Book]:
        rows = self._select("books", [("select", "*"), ("id", _eq(book_id))])
        return _parse(Book, rows[0], "books") if rows else None

    def find_book_with_relations(self, book_id: int) -> Optional[BookDetail]:
        rows = self._select(
            "books",
            [
                ("select", BOOK_DETAIL_COLUMNS),
                ("id", _eq(book_id)),
                ("comments.order", COMMENT_ORDER),
            ],
        )
        return _parse(BookDetail, rows[0], "books") if rows else None

    def insert_book(self, fields: Dict[str, Any]) -> Book:
        rows = self._write("POST", "books", body=[fields])
        if not rows:
            raise StoreFailure("Insert into books returned no row")
        return _parse(Book, rows[0], "books")

    def update_book(self, book_id: int, fields: Dict[str, Any]) -> bool:
        rows = self._write("PATCH", "books", [("id", _eq(book_id))], body=fields)
        return bool(rows)

    # -- categories --------------------------------------------------------------

    def list_categories(self) -> List[Category]:
        rows = self._select("categories", [("select", "*")])
        return [_parse(Category, row, "categories") for row in rows]

    def insert_category(self, name: str) -> Category:
        rows = self._write("POST", "categories", body=[{"name": name}])
        if not rows:
            raise StoreFailure("Insert into categories returned no row")
        return _parse(Category, rows[0], "categories")

    # -- comments ----------------------------------------------------------------

    def insert_comment(self, book_id: int, comment_text: Optional[str]) -> Comment:
        rows = self._write(
            "POST", "comments", body=[{"book_id": book_id, "comment_text": comment_text}]
        )
        if not rows:
            raise StoreFailure("Insert into comments returned no row")
        return _parse(Comment, rows[0], "comments")

    def list_comments_by_book(self, book_id: int) -> List[Comment]:
        rows = self._select(
            "comments",
            [("select", "*"), ("book_id", _eq(book_id)), ("order", COMMENT_ORDER)],
        )
        return [_parse(Comment, row, "comments") for row in rows]

    def find_comment_by_id(self, comment_id: int) -> Optional[Comment]:
        rows = self._select("comments", [("select", "*"), ("id", _eq(comment_id))])
        return _parse(Comment, rows[0], "comments") if rows else None

    def update_comment(self, comment_id: int, comment_text: Optional[str]) -> Optional[Comment]:
        rows = self._write(
            "PATCH", "comments", [("id", _eq(comment_id))], body={"comment_text": comment_text}
        )
        return _parse(Comment, rows[0], "comments") if rows else None

    def delete_comment(self, comment_id: int) -> bool:
        rows = self._write("DELETE", "comments", [("id", _eq(comment_id))])
        return bool(rows)


def _error_message(exc: urllib.error.HTTPError) -> str:
    """Extract PostgREST's ``message`` field from an error response."""
    try:
        payload = json.loads(exc.read().decode("utf-8", errors="ignore"))
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"Database request failed with status {exc.code}"
