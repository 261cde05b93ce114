"""
Global settings and configuration for the Bookshelf API.

Values are read from the process environment once, at import time. A
``.env`` file in the working directory is loaded first so local
development does not need exported variables.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Supabase configuration. Leaving the URL unset selects the in-memory store.
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")
if SUPABASE_URL and not SUPABASE_SERVICE_KEY:
    raise RuntimeError(
        "Environment variable 'SUPABASE_SERVICE_KEY' is required when SUPABASE_URL is set"
    )

STORE_TIMEOUT = float(os.getenv("BOOKSHELF_STORE_TIMEOUT", "10"))  # seconds

# Maximum number of comments kept per book
COMMENT_LIMIT = int(os.getenv("BOOKSHELF_COMMENT_LIMIT", "20"))

# Rating bounds, inclusive
MIN_RATING = 1
MAX_RATING = 5

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("BOOKSHELF_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("BOOKSHELF_LOG_LEVEL", "INFO").upper()

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
