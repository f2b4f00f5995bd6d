"""FastAPI application factory.

Run with:
    uvicorn releasewatch.main:app --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI

from releasewatch import __version__
from releasewatch.api.exception_handlers import register_exception_handlers
from releasewatch.api.routers import api_router
from releasewatch.infrastructure.lifecycle import lifespan


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="ReleaseWatch",
        description="Detects new releases of tracked artists and games",
        version=__version__,
        lifespan=lifespan,
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
