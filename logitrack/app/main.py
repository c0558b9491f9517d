"""
FastAPI Application Entry Point.

This is the main application file for the LogiTrack Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi.exceptions import RequestValidationError
from logitrack.app.core.config import settings
from logitrack.app.api.v1.router import router as api_v1_router
from logitrack.app.schemas.auth import TokenResponse
from logitrack.app.core.jwt import token_for_user
from logitrack.app.core.observability import ObservabilityMiddleware, configure_logging
from logitrack.app.core.redis_client import ping_redis
from logitrack.app.db.session import engine, Base, AsyncSessionLocal, get_db
from logitrack.app.core.exceptions import (
    AppException,
    ResourceNotFoundError,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from logitrack.app.services.status_catalog import StatusCatalog

# Import models to ensure they are registered with Base
from logitrack.app.models.user import User
from logitrack.app.models.client import Client
from logitrack.app.models.company import Company
from logitrack.app.models.status import Status
from logitrack.app.models.package import Package
from logitrack.app.models.package_history import PackageHistory
from logitrack.app.models.notification import Notification

configure_logging(settings.log_level)
logger = logging.getLogger("logitrack")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Installs the default package statuses on an empty catalog.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        seeded = await StatusCatalog.seed_defaults(db)
        if seeded:
            logger.info("Installed %s default package statuses", seeded)

    yield
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Parcel tracking backend: packages, drivers, escalations and badges",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Redis only backs the badge cache, so a down Redis degrades instead of
    failing the check.
    """
    redis_ok = await ping_redis()
    return {
        "status": "healthy" if redis_ok else "degraded",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if redis_ok else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to LogiTrack Backend API",
        "docs": "/docs",
        "health": "/health",
    }


if settings.debug:
    @app.post("/auth/dev-token", response_model=TokenResponse, tags=["Authentication"])
    async def issue_dev_token(user_id: int, db: AsyncSession = Depends(get_db)):
        """
        Mint a bearer token for an existing user.

        Only mounted with DEBUG=true; production tokens come from the
        identity provider.
        """
        user = await db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        return TokenResponse(
            access_token=token_for_user(user.id, user.username),
            user_id=user.id,
            username=user.username,
            role=user.role,
        )
