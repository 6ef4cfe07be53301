"""ExtraTheme Server.

HTTP API for comparing and merging content between two themes of a shop.
The OAuth install flow that creates sessions is not part of this app; it
writes sessions into the configured SessionStore.
"""

from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from extratheme import api
from extratheme.client import ThemeClient
from extratheme.config import get_settings
from extratheme.logging import configure_logging
from extratheme.session import InMemorySessionStore, Session, SessionStore

ClientFactory = Callable[[Session], ThemeClient]


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global handler for unhandled exceptions."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "error": str(exc)},
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info("Starting ExtraTheme server", extra={"port": settings.port})
    yield
    logger.info("Shutting down ExtraTheme server")


def create_app(
    session_store: SessionStore | None = None,
    client_factory: ClientFactory | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        session_store: Where sessions are looked up. Defaults to an
            in-memory store.
        client_factory: Builds a ThemeClient for a validated session.
            Defaults to the Admin API transport.
    """
    settings = get_settings()

    configure_logging(
        is_production=settings.is_production,
        log_level=settings.log_level,
    )

    app = FastAPI(
        title="ExtraTheme",
        description="Compare and merge content between Shopify themes",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs" if not settings.is_production else None,
        openapi_url="/api/openapi.json" if not settings.is_production else None,
    )

    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.state.session_store = session_store or InMemorySessionStore()
    app.state.client_factory = client_factory or (
        lambda session: ThemeClient.for_session(session, settings)
    )

    app.include_router(api.router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "extratheme.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=not settings.is_production,
    )
