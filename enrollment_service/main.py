import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv


# Load .env FIRST before any other imports that might need env vars
PROJECT_DIR = Path(__file__).parent.parent
load_dotenv(PROJECT_DIR / ".env")

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DatabaseError, IntegrityError, OperationalError
from starlette.requests import Request

from enrollment_service import __version__
from enrollment_service.config.logging import setup_logging
from enrollment_service.config.settings import get_settings
from enrollment_service.database.engine import engine
from enrollment_service.enrollments.router import router as enrollments_router
from enrollment_service.exceptions import ConflictError, ResourceNotFoundError
from enrollment_service.middleware.error_handlers import (
    ErrorCategory,
    ErrorCode,
    format_error_response,
    handle_conflict_errors,
    handle_database_errors,
    handle_not_found_errors,
    handle_rate_limit_errors,
    handle_request_validation_errors,
    log_error_context,
)
from enrollment_service.middleware.security import SimpleSecurityMiddleware, limiter
from enrollment_service.progress.router import router as progress_router


setup_logging(get_settings().LOG_LEVEL)
logger = logging.getLogger(__name__)


def _register_routers(app: FastAPI) -> None:
    """Register all application routers."""
    app.include_router(enrollments_router)
    app.include_router(progress_router)


async def _startup_database() -> None:
    """Connect to the database (with retries) and create missing tables."""
    from enrollment_service.database.init import init_database_with_retry

    settings = get_settings()
    try:
        await init_database_with_retry(
            engine,
            create_tables=settings.DB_AUTO_CREATE,
            max_retries=settings.DB_CONNECT_RETRIES,
        )
    except Exception:
        logger.exception("Startup failed with unexpected error")
        raise


async def _shutdown_cleanup() -> None:
    """Clean up resources on shutdown."""
    logger.info("Starting graceful shutdown...")

    try:
        await engine.dispose()
        logger.info("Database engine disposed successfully")
    except Exception as e:
        logger.warning(f"Error disposing database engine: {e}")

    logger.info("Shutdown complete")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    await _startup_database()

    yield

    await _shutdown_cleanup()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    try:
        settings = get_settings()
    except Exception:
        logger.exception("Failed to load settings")
        raise

    app = FastAPI(
        title="Enrollment Service API",
        description="API for managing course enrollments and progress tracking",
        version=__version__,
        debug=settings.DEBUG,
        lifespan=lifespan if settings.ENVIRONMENT != "test" else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SimpleSecurityMiddleware)

    # Add rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, handle_rate_limit_errors)

    # Domain errors
    app.add_exception_handler(ResourceNotFoundError, handle_not_found_errors)
    app.add_exception_handler(ConflictError, handle_conflict_errors)

    # Malformed path, query or body input is a 400
    app.add_exception_handler(RequestValidationError, handle_request_validation_errors)

    # Database errors
    app.add_exception_handler(IntegrityError, handle_database_errors)
    app.add_exception_handler(OperationalError, handle_database_errors)
    app.add_exception_handler(DatabaseError, handle_database_errors)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        from uuid import uuid4

        error_id = uuid4()
        log_error_context(request, exc, error_id)

        # Return generic error response without exposing internal details
        return format_error_response(
            category=ErrorCategory.INTERNAL,
            code=ErrorCode.INTERNAL,
            detail="An unexpected error occurred",
            status_code=500,
            metadata={"error_id": str(error_id)},
            suggestions=["Please try again later"],
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Check application health status."""
        return {"status": "ok", "service": settings.SERVICE_NAME}

    _register_routers(app)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    from enrollment_service.config import env

    uvicorn.run(app, host=env("API_HOST", "127.0.0.1"), port=int(env("API_PORT", 3005)))
