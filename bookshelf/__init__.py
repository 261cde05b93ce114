"""
Bookshelf: a small REST API for a book catalogue.

Books and categories are listed and created through the ``catalog``
package, which also lets readers comment on and rate a book. Durable
state lives in a hosted Supabase database; an in-memory store is used
when no database is configured.
"""

__version__ = "1.0.0"
