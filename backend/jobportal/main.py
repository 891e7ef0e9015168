import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobportal.core.config import Settings, settings
from jobportal.core.errors import ConfigurationError, setup_error_handlers
from jobportal.core.logging import RequestLoggingMiddleware, setup_logging
from jobportal.core.security import TokenService
from jobportal.db.base import Base
from jobportal.db.session import check_connection, engine, get_session

# Import all models so SQLAlchemy can discover them for table creation
from jobportal.models import Job, JobApplication, Notification, Post, User  # noqa: F401
from jobportal.services.users import ensure_admin

# Import API router
from jobportal.api.api import api_router

logger = logging.getLogger(__name__)


def validate_startup(config: Settings = settings) -> None:
    """
    Refuse to start without a usable signing key or connection string.

    Raises:
        ConfigurationError: If either is missing or the key is too short
    """
    if not config.DATABASE_URL:
        raise ConfigurationError("DATABASE_URL is not configured.")
    TokenService.from_settings(config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration, create database tables and seed the admin on startup."""
    validate_startup()
    Base.metadata.create_all(bind=engine)
    with get_session() as db:
        ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    logger.info(f"{settings.APP_NAME} started")
    yield


setup_logging("DEBUG" if settings.DEBUG else settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)

app = FastAPI(
    title=settings.APP_NAME,
    description="Job portal backend: accounts, job postings, applications and notifications",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS Middleware - allowlist from env (comma-separated)
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in settings.BACKEND_CORS_ORIGINS.split(",")
    if origin.strip()
]

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["x-request-id"],
)

setup_error_handlers(app)


@app.get("/", tags=["Root"])
def root():
    """Root endpoint."""
    return {"message": f"Welcome to {settings.APP_NAME} API"}


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "database": check_connection()}


# Include API router under the versioned prefix
app.include_router(api_router, prefix=settings.API_V1_PREFIX)
