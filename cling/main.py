from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from prometheus_fastapi_instrumentator import Instrumentator
import uvicorn
import logging
import sys
import os

from cling.core.config import settings
from cling.core.database_utils import check_database_connection, get_db_session
from cling.core.exceptions import AppError
from cling.db.base import Base
import cling.models  # noqa: F401  (register tables on Base.metadata)

logger = logging.getLogger(__name__)

WEAK_SECRET_KEYS = {"", "secret", "changeme", "change-me", "dev", "development"}


def configure_logging() -> None:
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"Starting up {settings.PROJECT_NAME}...")

    try:
        from sqlalchemy import inspect

        with get_db_session() as db:
            existing_tables = inspect(db.bind).get_table_names()
            required_tables = [table.name for table in Base.metadata.tables.values()]
            missing_tables = [table for table in required_tables if table not in existing_tables]
            if missing_tables:
                logger.warning(f"Missing database tables: {missing_tables}")
                logger.warning("Run scripts/setup_database.py before starting the server")
            else:
                logger.info("All required database tables exist")
    except Exception as e:
        logger.warning(f"Could not check database tables: {e}")

    yield

    logger.info(f"Shutting down {settings.PROJECT_NAME}...")


def validate_configuration() -> None:
    """
    Validate that required configuration is present before starting the application.
    Production refuses to start without SMTP and a strong SECRET_KEY; other
    environments only warn.
    """
    logger.info(f"Validating application configuration for {settings.ENVIRONMENT.value} environment...")

    problems = []
    if not settings.smtp_configured:
        missing = [
            name for name in ("SMTP_SERVER", "SMTP_USERNAME", "SMTP_PASSWORD", "FROM_EMAIL")
            if not getattr(settings, name, None)
        ]
        problems.append(f"Missing email configuration: {', '.join(missing)}")
    if settings.SECRET_KEY.strip().lower() in WEAK_SECRET_KEYS or len(settings.SECRET_KEY) < 32:
        problems.append("SECRET_KEY is too weak (use at least 32 random characters)")

    if settings.is_production:
        if problems:
            error_msg = "; ".join(problems)
            logger.error(error_msg)
            raise ValueError(error_msg)
    else:
        for problem in problems:
            logger.warning(problem)

    if not settings.STABILITY_API_KEY:
        logger.warning("STABILITY_API_KEY not set; /generate-image will fail")
    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not set; /ai/generate-images will fail")

    logger.info(f"Configuration validation passed for {settings.ENVIRONMENT.value} environment")


async def app_error_handler(request: Request, exc: AppError):
    if exc.log_as_error:
        detail = getattr(exc, "detail", None)
        logger.error(f"{type(exc).__name__} {exc.status_code}: {exc.message} detail={detail!r} - {request.url}")
    else:
        logger.info(f"{type(exc).__name__} {exc.status_code}: {exc.message} - {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Global HTTP exception handler"""
    logger.info(f"HTTP {exc.status_code}: {exc.detail} - {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.detail,
            "status_code": exc.status_code,
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = f"{field}: {first.get('msg')}" if field else (first.get("msg") or "Invalid request")
    logger.info(f"Request validation failed: {message} - {request.url.path}")
    return JSONResponse(
        status_code=400,
        content={
            "error": True,
            "message": message,
            "status_code": 400,
        },
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled exceptions"""
    logger.exception(f"Unhandled exception: {exc} - {request.url}")
    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "message": "Internal server error",
            "status_code": 500,
        },
    )


def create_application() -> FastAPI:
    """Create and configure the FastAPI application"""
    validate_configuration()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Cling - reminders with email OTP login and AI icon suggestions",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url=f"{settings.API_PREFIX}/docs",
        lifespan=lifespan,
    )

    # Credentials are required for the session cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    from cling.api.v1.api import api_router
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/health", tags=["Health Check"])
    def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "version": settings.VERSION,
            "project": settings.PROJECT_NAME,
            "database": "healthy" if check_database_connection() else "unhealthy",
        }

    # Re-hosted generated images
    uploads_dir = settings.UPLOADS_DIR
    if not os.path.exists(uploads_dir):
        os.makedirs(uploads_dir, exist_ok=True)
        logger.info(f"Created uploads directory: {uploads_dir}")
    app.mount("/uploads", StaticFiles(directory=uploads_dir), name="uploads")

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    return app


configure_logging()

# Create the FastAPI app instance
app = create_application()

if __name__ == "__main__":
    uvicorn.run(
        "cling.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )
