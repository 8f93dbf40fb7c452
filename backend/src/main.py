"""
FastAPI application entry point for the scheduler backend.

This module initializes the FastAPI application with:
- CORS middleware configured from settings
- Exception handlers for consistent error responses
- Profile and event routers under /api
- Logging configuration

Environment Variables:
    SCHEDULER_ENV: Environment (production/development, default: development)
    SCHEDULER_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)
    SCHEDULER_CORS_ORIGINS: Comma-separated allowed origins
"""

from contextlib import asynccontextmanager
from typing import Dict, Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from backend.src.config.settings import get_settings
from backend.src.db.database import dispose_engine
from backend.src.utils.logging_config import init_logging, get_logger


APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup logs the effective configuration; schema creation is left to
    Alembic (or ``web_server.py --init-db`` for local use). Shutdown closes
    the connection pool.
    """
    logger = get_logger("api")
    settings = get_settings()
    logger.info(
        "Starting scheduler backend",
        extra={
            "environment": settings.environment,
            "default_timezone": settings.default_timezone,
        }
    )

    yield

    logger.info("Shutting down scheduler backend")
    dispose_engine()


# Initialize logging before creating app
init_logging()

app = FastAPI(
    title="Scheduler API",
    description="Profile-timezone event scheduling with a field-level audit trail. "
                "Events are stored as UTC instants and rendered in any viewer timezone.",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers


@app.exception_handler(ValidationError)
async def validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors raised outside request parsing."""
    logger = get_logger("api")
    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": exc.errors(),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": exc.errors(include_url=False),
        }
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Handle SQLAlchemy database errors."""
    logger = get_logger("db")
    logger.error(
        "Database error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the database. "
                      "Please try again later.",
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        }
    )


# Health check endpoint


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """Health status and application information."""
    return {
        "status": "healthy",
        "service": "scheduler-backend",
        "version": APP_VERSION,
    }


# API routers
from backend.src.api import events, profiles  # noqa: E402

app.include_router(profiles.router, prefix="/api")
app.include_router(events.router, prefix="/api")


# Root endpoint


@app.get("/", tags=["Root"])
async def root() -> Dict[str, str]:
    """API metadata and documentation links."""
    return {
        "message": "Scheduler API",
        "version": APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "openapi": "/openapi.json",
    }
