"""Main application module for the Databox service."""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.api.routes import api_keys, health, projects, tables
from app.core import config
from app.core.errors import (
    DataboxError,
    IndexOutOfRange,
    NotFound,
    PersistenceFailure,
    ValidationError,
)
from app.db.client import Database
from app.services.sessions import SessionManager

# Application settings
APP_TITLE = "Databox API"
APP_DESCRIPTION = "Projects, tables, rows and API keys for Databox tenants"
APP_VERSION = health.SERVICE_VERSION

ERROR_STATUS = {
    ValidationError: 422,
    NotFound: status.HTTP_404_NOT_FOUND,
    IndexOutOfRange: status.HTTP_409_CONFLICT,
    PersistenceFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def create_application(database: Optional[Database] = None) -> FastAPI:
    """Create and configure FastAPI application."""

    # Lifespan context manager for startup/shutdown events
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for application startup and shutdown events."""
        app.state.sessions = SessionManager(database or Database())
        logger.info(f"✅ Databox started with {config.STORAGE_BACKEND} storage")

        yield  # Application runs here

        await app.state.sessions.close_all()
        logger.info("✅ Shutdown complete")

    app = FastAPI(
        title=APP_TITLE,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(projects.router)
    app.include_router(tables.router)
    app.include_router(api_keys.router)
    app.include_router(health.router)

    # Error handling
    @app.exception_handler(DataboxError)
    async def databox_exception_handler(request: Request, exc: DataboxError):
        status_code = next(
            (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        content = {"success": False, "message": exc.message}
        if isinstance(exc, ValidationError) and exc.column:
            content["data"] = {"column": exc.column}
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(f"❌ Unhandled error on {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": f"An unexpected error occurred: {str(exc)}",
            },
        )

    # Root endpoint
    @app.get("/")
    async def root():
        return {
            "success": True,
            "message": "Welcome to Databox API",
            "data": {
                "version": APP_VERSION,
                "documentation": "/docs",
            },
        }

    return app


app = create_application()
