"""
FastAPI application entry point for the Gjallarhorn ingestion API.

This module configures logging, builds the application, and starts the ASGI
server.

Startup is strict: if the database cannot be reached or the schema cannot be
synchronized, the lifespan re-raises and uvicorn (run with lifespan="on")
exits with a non-zero status instead of serving requests.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gjallarhorn import __version__
from gjallarhorn.api import api_router
from gjallarhorn.core.config import Settings, get_settings
from gjallarhorn.core.context import AppContext
from gjallarhorn.core.exceptions import IngestionError


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Open the AppContext (pool + connection check + schema sync)
        - Any failure is re-raised so the server never starts serving

    On shutdown:
        - Close the database connection pool
    """
    settings: Settings = app.state.settings
    logger.info("Gjallarhorn API starting")
    try:
        context = await AppContext.open(settings)
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise
    app.state.context = context
    logger.info("Database connection pool initialized")

    yield

    logger.info("Gjallarhorn API shutting down")
    try:
        await context.close()
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


async def ingestion_error_handler(request: Request, exc: IngestionError) -> JSONResponse:
    """Map failures raised outside the endpoints (e.g. in dependencies) to 422."""
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=422, content={"detail": exc.detail()})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Explicit settings; defaults to the cached environment settings.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Gjallarhorn API",
        version=__version__,
        description=(
            "Ingests test-execution reports: SonarQube quality-gate metrics "
            "and end-to-end scenario/test/step runs."
        ),
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_exception_handler(IngestionError, ingestion_error_handler)
    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for monitoring and load balancer probes.

        Returns:
            Dict with status 'healthy'
        """
        return {"status": "healthy"}

    @app.get("/")
    async def root():
        """
        Root endpoint providing API information.

        Returns:
            Dict with API name and version
        """
        return {
            "name": "Gjallarhorn API",
            "version": __version__,
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    logger.info(f"Starting server on {settings.server_host}:{settings.server_port}")
    uvicorn.run(
        app,
        host=settings.server_host,
        port=settings.server_port,
        lifespan="on",
        log_level=settings.log_level.lower(),
    )


# Run with uvicorn when executed directly
if __name__ == "__main__":
    run()
