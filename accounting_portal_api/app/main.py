"""
Main entrypoint for the Accounting Services Portal API.

This module assembles the FastAPI application, sets up logging and
includes the routers.  Submissions are accepted at
``/api/<service-type>``; catalog, request lookup and staff routes live
under ``/api/v1``.  The ``create_app`` function builds and configures
the app, which is then instantiated at module import time as ``app``::

    uvicorn accounting_portal_api.app.main:app --reload

The application title and version are provided via ``Settings`` from
``core.config``.
"""

from fastapi import FastAPI

from .core.config import settings
from .core.logging_config import setup_logging
from .api.submissions import router as submissions_router
from .api.v1.router import router as v1_router
from .core.db import init_db


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Initialise logging before anything else so that imports below can
    # safely log messages.
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version)

    # Versioned routes first; the submission routes match any single
    # segment under /api.
    app.include_router(v1_router, prefix="/api/v1")
    app.include_router(submissions_router, prefix="/api", tags=["submissions"])

    @app.get("/health", include_in_schema=False)
    async def health() -> dict:
        return {"status": "ok"}

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file if needed and applies migrations.
        init_db()

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
