"""FastAPI main application module."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError

from ...domain.exceptions import (
    BookingError,
    NotFoundError,
    ItemUnavailableError,
    BookingConflictError,
    InvalidDateRangeError,
    ForbiddenError,
    InvalidTransitionError
)
from ...infrastructure.logging import LoggingConfig, get_logger
from ...infrastructure.services import initialize_services, shutdown_services
from .routes import health, bookings, notifications
from .config import get_settings
from .middleware import AuthenticationError, RequestResponseLoggingMiddleware


logger = get_logger(__name__)

ERROR_STATUS_CODES = {
    NotFoundError: 404,
    ItemUnavailableError: 409,
    BookingConflictError: 409,
    InvalidDateRangeError: 400,
    ForbiddenError: 403,
    InvalidTransitionError: 409,
}


def status_code_for(exc: BookingError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    logger.info("Starting Rental Booking API")
    await initialize_services()

    yield

    # Shutdown
    logger.info("Shutting down Rental Booking API")
    await shutdown_services()


def add_exception_handlers(app: FastAPI) -> None:
    """Add custom exception handlers to the FastAPI application."""

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        """Handle authentication errors."""
        logger.warning(f"Authentication error on {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=401,
            content={
                "detail": str(exc),
                "type": "authentication_error"
            },
            headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        """Map domain errors to their HTTP status and stable error code."""
        status_code = status_code_for(exc)
        logger.warning(f"{exc.code} on {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=status_code,
            content={
                "detail": str(exc),
                "type": exc.code
            }
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        """Storage failures leave no partial booking behind; report them as unavailable."""
        logger.error(f"Storage error on {request.url.path}: {str(exc)}", exc_info=exc)
        return JSONResponse(
            status_code=503,
            content={
                "detail": "Storage is temporarily unavailable",
                "type": "storage_error"
            }
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle validation errors from business logic."""
        logger.warning(f"Validation error on {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=400,
            content={
                "detail": str(exc),
                "type": "validation_error"
            }
        )

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(request: Request, exc: RuntimeError):
        """Handle runtime errors from business logic."""
        logger.error(f"Runtime error on {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error occurred",
                "type": "runtime_error"
            }
        )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    LoggingConfig(
        log_level=settings.log_level,
        service_name=settings.service_name,
        log_dir=settings.log_dir
    ).setup_logging()

    app = FastAPI(
        title="Rental Booking Service",
        description="Booking lifecycle API for the rental marketplace",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    add_exception_handlers(app)

    app.add_middleware(RequestResponseLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    app.include_router(health.router, tags=["health"])
    app.include_router(
        bookings.router,
        prefix=f"{settings.api_prefix}/bookings",
        tags=["bookings"]
    )
    app.include_router(
        notifications.router,
        prefix=f"{settings.api_prefix}/notifications",
        tags=["notifications"]
    )

    return app


# Create app instance
app = create_app()
