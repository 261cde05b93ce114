"""
Exceptions raised by the catalogue services and stores.

The HTTP layer maps each subclass of ``CatalogError`` to a status code
through ``status_code``; see ``bookshelf.main``.
"""


class CatalogError(Exception):
    """Base class for every error surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(CatalogError):
    """A referenced book or comment does not exist."""

    status_code = 404


class InvalidArgument(CatalogError):
    """A request value is outside its accepted range."""

    status_code = 400


class StoreFailure(CatalogError):
    """The backing store failed (network error, constraint violation, ...)."""

    status_code = 500
