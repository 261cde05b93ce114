"""
Tests for the Supabase store. ``urllib.request.urlopen`` is patched so
no network traffic happens; the tests check the PostgREST requests that
would be sent and how responses are mapped back.
"""

import io
import json
import unittest.mock
import urllib.error
import urllib.parse

import pytest

from bookshelf.catalog.ratings import rate_book
from bookshelf.catalog.supabase_store import SupabaseBookStore
from bookshelf.errors import StoreFailure


URLOPEN = "bookshelf.catalog.supabase_store.urllib.request.urlopen"

BOOK_ROW = {
    "id": 7,
    "category_id": 2,
    "title": "Dune",
    "author": "Frank Herbert",
    "image_url": None,
    "description": "Spice.",
    "pages": 412,
    "year": 1965,
    "total_votes": 3,
    "average_rating": 4.0,
    "age_range": "14+",
    "created_at": "2024-01-01T00:00:00+00:00",
}


def fake_response(payload):
    body = b"" if payload is None else json.dumps(payload).encode("utf-8")
    response = unittest.mock.MagicMock()
    response.read.return_value = body
    response.__enter__.return_value = response
    return response


def sent_request(mock_urlopen, index=-1):
    request = mock_urlopen.call_args_list[index][0][0]
    split = urllib.parse.urlsplit(request.full_url)
    return request, split.path, urllib.parse.parse_qsl(split.query)


@pytest.fixture
def supabase():
    return SupabaseBookStore("https://project.supabase.co/", "service-key", timeout=5)


class TestTransport:
    def test_auth_headers(self, supabase):
        """Every request carries the key as apikey and bearer token."""
        with unittest.mock.patch(URLOPEN, return_value=fake_response([])) as mock_urlopen:
            supabase.list_categories()
        request, path, params = sent_request(mock_urlopen)
        assert path == "/rest/v1/categories"
        assert request.get_header("Apikey") == "service-key"
        assert request.get_header("Authorization") == "Bearer service-key"
        assert mock_urlopen.call_args[1]["timeout"] == 5

    def test_http_error_raises_store_failure(self, supabase):
        """PostgREST error responses become StoreFailure with their message."""
        error = urllib.error.HTTPError(
            "https://project.supabase.co/rest/v1/books",
            409,
            "Conflict",
            {},
            io.BytesIO(b'{"message": "duplicate key value"}'),
        )
        with unittest.mock.patch(URLOPEN, side_effect=error):
            with pytest.raises(StoreFailure, match="duplicate key value"):
                supabase.insert_book({"title": "Dune"})

    def test_network_error_raises_store_failure(self, supabase):
        """Unreachable hosts become StoreFailure rather than empty results."""
        with unittest.mock.patch(URLOPEN, side_effect=urllib.error.URLError("refused")):
            with pytest.raises(StoreFailure):
                supabase.list_books()

    def test_invalid_json_raises_store_failure(self, supabase):
        """Undecodable bodies become StoreFailure."""
        response = fake_response(None)
        response.read.return_value = b"<html>"
        with unittest.mock.patch(URLOPEN, return_value=response):
            with pytest.raises(StoreFailure):
                supabase.list_categories()


class TestBooks:
    def test_find_book_by_id(self, supabase):
        """Books are filtered with an eq. filter and parsed into rows."""
        with unittest.mock.patch(URLOPEN, return_value=fake_response([BOOK_ROW])) as mock_urlopen:
            book = supabase.find_book_by_id(7)
        request, path, params = sent_request(mock_urlopen)
        assert request.get_method() == "GET"
        assert path == "/rest/v1/books"
        assert ("id", "eq.7") in params
        assert book.title == "Dune"
        assert book.total_votes == 3

    def test_find_book_missing(self, supabase):
        """An empty result means the book does not exist."""
        with unittest.mock.patch(URLOPEN, return_value=fake_response([])):
            assert supabase.find_book_by_id(99) is None

    def test_find_book_with_relations(self, supabase):
        """The projection embeds category and comments ordered oldest first."""
        row = {
            "id": 7,
            "title": "Dune",
            "total_votes": 0,
            "average_rating": 0,
            "categories": {"name": "Sci-Fi"},
            "comments": [{"id": 1, "comment_text": "first"}, {"id": 2, "comment_text": "second"}],
        }
        with unittest.mock.patch(URLOPEN, return_value=fake_response([row])) as mock_urlopen:
            detail = supabase.find_book_with_relations(7)
        _, _, params = sent_request(mock_urlopen)
        select = dict(params)["select"]
        assert "categories(name)" in select
        assert "comments(id,comment_text)" in select
        assert ("comments.order", "created_at.asc,id.asc") in params
        assert detail.categories.name == "Sci-Fi"
        assert [c.id for c in detail.comments] == [1, 2]

    def test_null_aggregates_read_as_zero(self, supabase):
        """A book whose rating columns are null has no votes yet."""
        row = dict(BOOK_ROW, total_votes=None, average_rating=None)
        with unittest.mock.patch(URLOPEN, return_value=fake_response([row])):
            book = supabase.find_book_by_id(7)
        assert (book.total_votes, book.average_rating) == (0, 0.0)

    def test_mismatched_row_raises_store_failure(self, supabase):
        """A row that does not fit the book model is a store failure."""
        row = dict(BOOK_ROW, average_rating="not a number")
        with unittest.mock.patch(URLOPEN, return_value=fake_response([row])):
            with pytest.raises(StoreFailure, match="books"):
                supabase.find_book_by_id(7)

    def test_mismatched_comment_row(self, supabase):
        """Comment rows missing required columns are store failures too."""
        with unittest.mock.patch(URLOPEN, return_value=fake_response([{"comment_text": "x"}])):
            with pytest.raises(StoreFailure):
                supabase.list_comments_by_book(7)

    def test_rate_book_with_null_aggregates(self, supabase):
        """Rating a book whose aggregate is null counts as its first vote."""
        row = dict(BOOK_ROW, total_votes=None, average_rating=None)
        rated = dict(BOOK_ROW, total_votes=1, average_rating=5.0, comments=[], categories=None)
        responses = [fake_response([row]), fake_response([rated]), fake_response([rated])]
        with unittest.mock.patch(URLOPEN, side_effect=responses) as mock_urlopen:
            detail = rate_book(supabase, 7, 5)
        patch_request, _, _ = sent_request(mock_urlopen, 1)
        assert patch_request.get_method() == "PATCH"
        assert json.loads(patch_request.data) == {"total_votes": 1, "average_rating": 5.0}
        assert (detail.total_votes, detail.average_rating) == (1, 5.0)

    def test_update_book(self, supabase):
        """Rating fields are written together in one PATCH."""
        updated_row = dict(BOOK_ROW, total_votes=4, average_rating=4.25)
        with unittest.mock.patch(URLOPEN, return_value=fake_response([updated_row])) as mock_urlopen:
            assert supabase.update_book(7, {"total_votes": 4, "average_rating": 4.25})
        request, _, params = sent_request(mock_urlopen)
        assert request.get_method() == "PATCH"
        assert ("id", "eq.7") in params
        assert request.get_header("Prefer") == "return=representation"
        assert json.loads(request.data) == {"total_votes": 4, "average_rating": 4.25}

    def test_update_missing_book(self, supabase):
        """A PATCH matching no rows reports False."""
        with unittest.mock.patch(URLOPEN, return_value=fake_response([])):
            assert supabase.update_book(99, {"total_votes": 1}) is False


class TestComments:
    def test_insert_comment(self, supabase):
        """Comments are inserted with their book id and returned parsed."""
        row = {"id": 11, "book_id": 7, "comment_text": "", "created_at": "2024-01-02T00:00:00+00:00"}
        with unittest.mock.patch(URLOPEN, return_value=fake_response([row])) as mock_urlopen:
            comment = supabase.insert_comment(7, "")
        request, path, _ = sent_request(mock_urlopen)
        assert request.get_method() == "POST"
        assert path == "/rest/v1/comments"
        assert json.loads(request.data) == [{"book_id": 7, "comment_text": ""}]
        assert comment.id == 11
        assert comment.comment_text == ""

    def test_list_comments_ordered(self, supabase):
        """Comments are requested oldest first, ties by id."""
        with unittest.mock.patch(URLOPEN, return_value=fake_response([])) as mock_urlopen:
            assert supabase.list_comments_by_book(7) == []
        _, _, params = sent_request(mock_urlopen)
        assert ("book_id", "eq.7") in params
        assert ("order", "created_at.asc,id.asc") in params

    def test_delete_comment(self, supabase):
        """DELETE reports whether a row was removed."""
        with unittest.mock.patch(URLOPEN, return_value=fake_response([{"id": 3, "book_id": 7}])) as mock_urlopen:
            assert supabase.delete_comment(3) is True
        request, _, params = sent_request(mock_urlopen)
        assert request.get_method() == "DELETE"
        assert ("id", "eq.3") in params

        with unittest.mock.patch(URLOPEN, return_value=fake_response([])):
            assert supabase.delete_comment(3) is False

    def test_update_missing_comment(self, supabase):
        """Editing a comment that matches nothing returns None."""
        with unittest.mock.patch(URLOPEN, return_value=fake_response([])):
            assert supabase.update_comment(5, "text") is None
