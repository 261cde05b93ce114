"""
Catalog package for the Bookshelf API.

This package contains the schemas, services, stores and route
definitions behind the REST API: books and categories can be listed
and created, and readers can comment on and rate a book. Routes take
their ``BookStore`` from the application state, so the hosted
Supabase database and the in-memory store are interchangeable.
"""

from .router import router as catalog_router  # noqa: F401
