"""
User Service - Main FastAPI Application.

Provides authentication, profile, address and user administration endpoints
backed by PostgreSQL, with cookie-based JWT sessions.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import settings
from .database import db_manager
from .exceptions import (
    InvalidCredentialsError,
    InvalidUserDataError,
    UserServiceException,
)
from .logging_config import get_logger, setup_logging
from .metrics import metrics_endpoint, track_request_metrics
from .routers import users

# Setup logging
setup_logging(log_level=settings.LOG_LEVEL, service_name="user-service")
logger = get_logger(__name__)

# Malformed bodies on these routes fail like the operation itself would
VALIDATION_FAILURES = {
    ("POST", "/api/users/login"): InvalidCredentialsError,
    ("POST", "/api/users"): InvalidUserDataError,
    ("PUT", "/api/users/profile"): InvalidUserDataError,
    ("PUT", "/api/users/{user_id}"): InvalidUserDataError,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events for the application.
    """
    logger.info("Starting User Service...")
    logger.info(f"Service: {settings.APP_NAME}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Log level: {settings.LOG_LEVEL}")

    await db_manager.connect()
    await db_manager.create_schema()
    logger.info("PostgreSQL connection pool initialized")

    yield

    logger.info("Shutting down User Service...")
    await db_manager.disconnect()


app = FastAPI(
    title=settings.APP_NAME,
    description="User authentication, profile, address and administration service",
    version=__version__,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def track_metrics(request: Request, call_next):
    """Track Prometheus request metrics."""
    start_time = time.time()
    response = await call_next(request)

    route = request.scope.get("route")
    endpoint = route.path if route is not None else request.url.path
    track_request_metrics(request.method, endpoint, response.status_code, time.time() - start_time)
    return response


@app.exception_handler(UserServiceException)
async def user_service_exception_handler(request: Request, exc: UserServiceException):
    """Render domain errors as ``{"detail": message}`` with their status code."""
    logger.warning(
        f"{request.method} {request.url.path} failed: {exc.message}",
        extra={"extra_fields": {"status_code": exc.status_code}},
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report invalid request bodies as the matching domain error where one exists."""
    route = request.scope.get("route")
    error_class = None
    if route is not None:
        error_class = VALIDATION_FAILURES.get((request.method, route.path))
    if error_class is None:
        return await request_validation_exception_handler(request, exc)

    logger.info(
        f"{request.method} {request.url.path} rejected invalid body",
        extra={"extra_fields": {"errors": len(exc.errors())}},
    )
    return await user_service_exception_handler(request, error_class())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred"},
    )


app.include_router(users.router)


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return await metrics_endpoint()


@app.get("/")
async def root() -> dict:
    """Root endpoint with service information."""
    return {
        "service": settings.APP_NAME,
        "version": __version__,
        "status": "active",
    }


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    db_healthy = False
    try:
        result = await db_manager.fetchval("SELECT 1")
        db_healthy = result == 1
    except Exception as e:
        logger.error(f"Database health check failed: {e}")

    return {
        "status": "healthy" if db_healthy else "degraded",
        "service": "user-service",
        "database": "connected" if db_healthy else "disconnected",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("user_service.app:app", host=settings.HOST, port=settings.PORT)
