"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from hotload import __version__
from hotload.api.middleware import ReloaderMiddleware
from hotload.api.routes import reload
from hotload.reload import Reloader

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    logger.info("Starting hotload API...")
    reloader: Reloader = app.state.reloader
    logger.info(f"Watching {len(reloader.config.load_paths)} load paths, {len(reloader.apps)} apps")

    yield

    # Shutdown
    logger.info("Shutting down hotload API...")


def create_app(reloader: Reloader | None = None, cooldown: float | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        reloader: Reloader to serve; a default one rooted at the working
            directory is created when omitted.
        cooldown: Seconds between request-triggered reload passes; defaults
            to the reloader's configured cooldown.
    """
    reloader = reloader or Reloader()
    if cooldown is None:
        cooldown = reloader.config.cooldown

    app = FastAPI(
        title="hotload",
        description="Incremental hot-reload engine",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.reloader = reloader

    app.add_middleware(ReloaderMiddleware, reloader=reloader, cooldown=cooldown)

    app.include_router(reload.router, prefix="/api/reload", tags=["reload"])

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app
