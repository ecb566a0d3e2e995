"""
Main entrypoint for the Asset Registry API.

This module assembles the FastAPI application, sets up logging,
includes versioned routers and registers the handler that turns
registry errors into HTTP responses.  The ``create_app`` function
builds and configures the app, which is then instantiated at module
import time as ``app``, e.g.::

    uvicorn asset_registry_api.app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.errors import (
    AssetRegistryError,
    AuthorizationError,
    ConflictError,
    IdentityError,
    NotFoundError,
    SerializationError,
    StoreError,
)
from .core.logging_config import setup_logging

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    IdentityError: status.HTTP_401_UNAUTHORIZED,
    SerializationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def registry_error_handler(request: Request, exc: AssetRegistryError) -> JSONResponse:
    """Map a registry error to its status code with the kind and message."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"error": exc.kind, "detail": exc.message})


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    setup_logging(settings.log_level, settings.log_file or None, debug=settings.debug)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)

    app.include_router(v1_router, prefix="/api/v1")
    app.add_exception_handler(AssetRegistryError, registry_error_handler)

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file on first start and applies migrations.
        init_db()
        logger.info("World state ready (backend=%s)", settings.state_backend)

    return app


app = create_app()
