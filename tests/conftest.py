"""
Shared fixtures for the Bookshelf test-suite.
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from bookshelf.catalog.store import InMemoryBookStore
from bookshelf.main import create_app


START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def ticking_clock(step_seconds: int = 1):
    """Return a clock that advances ``step_seconds`` on every call."""
    counter = itertools.count()
    return lambda: START + timedelta(seconds=step_seconds * next(counter))


@pytest.fixture
def store():
    return InMemoryBookStore(clock=ticking_clock())


@pytest.fixture
def book(store):
    category = store.insert_category("Fantasy")
    return store.insert_book(
        {
            "category_id": category.id,
            "title": "The Hobbit",
            "author": "J. R. R. Tolkien",
            "image_url": "https://example.com/hobbit.jpg",
            "description": "There and back again.",
            "pages": 310,
            "year": 1937,
            "age_range": "10+",
        }
    )


@pytest.fixture
def client(store):
    with TestClient(create_app(store=store)) as test_client:
        yield test_client
