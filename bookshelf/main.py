# bookshelf/main.py
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__, settings
from .catalog import catalog_router
from .catalog.store import BookStore, InMemoryBookStore
from .catalog.supabase_store import SupabaseBookStore
from .errors import CatalogError, StoreFailure


logger = logging.getLogger(__name__)


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_store() -> BookStore:
    """Pick the store from the environment: Supabase when configured, memory otherwise."""
    if settings.SUPABASE_URL:
        logger.info("Using Supabase store at %s", settings.SUPABASE_URL)
        return SupabaseBookStore(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_KEY,
            timeout=settings.STORE_TIMEOUT,
        )
    logger.warning("SUPABASE_URL is not set; using an in-memory store (data is not persisted)")
    return InMemoryBookStore()


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    if isinstance(exc, StoreFailure):
        logger.error("Error in %s %s: %s", request.method, request.url.path, exc.message, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(store: Optional[BookStore] = None) -> FastAPI:
    app = FastAPI(
        title="Bookshelf API",
        description=(
            "Book catalogue with categories, reader comments (20 most recent "
            "kept per book) and 1-5 star ratings."
        ),
        version=__version__,
    )
    app.state.store = store if store is not None else build_store()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(CatalogError, catalog_error_handler)

    @app.get("/")
    def health_check():
        return {"status": "ok", "message": "Bookshelf API is running"}

    app.include_router(catalog_router)
    return app


configure_logging()
app = create_app()


def run() -> None:
    uvicorn.run("bookshelf.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
