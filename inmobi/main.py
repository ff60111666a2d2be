"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
import logging

from inmobi.config import settings
from inmobi.database import create_tables, test_database_connection, close_db_connection
from inmobi.middleware import RequestContextMiddleware
from inmobi.routers import (
    auth_router,
    properties_router,
    user_router,
    messages_router,
    tours_router,
    market_router,
    payments_router,
    assistant_router,
    seo_router,
    i18n_router,
    dashboards_router,
    images_router,
    notifications_router,
)
from inmobi.services.error_handler import ErrorHandlerService
from inmobi.utils.exceptions import APIException

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Creates missing tables on startup and disposes the engine on shutdown.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    if await test_database_connection():
        await create_tables()
    else:
        logger.error("Failed to connect to database on startup")

    yield

    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Inmobi real-estate marketplace API.

    ## Features

    * **Listings**: CRUD, search, comparison, nearby and featured listings
    * **Buyers**: favorites, saved drafts, messaging and tour booking
    * **Premium**: bulk upload, market trends, value prediction and recommendations
    * **Payments**: Stripe subscriptions, payment intents and webhooks
    * **Realtime**: websocket notifications for new listings that match a subscription

    ## Authentication

    Use `/api/v1/auth/login` to obtain a JWT, then send it as `Authorization: Bearer <token>`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Authentication", "description": "Registration, login and token refresh"},
        {"name": "Properties", "description": "Listing management, search and insights"},
        {"name": "User", "description": "Favorites, inbox, drafts and preferences of the caller"},
        {"name": "Payments", "description": "Subscriptions and Stripe webhooks"},
        {"name": "Health", "description": "Service health"},
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)

app.add_middleware(
    RequestContextMiddleware,
    max_request_size=settings.max_file_size * settings.max_files_per_upload,
    enable_request_logging=settings.debug,
    enable_rate_limiting=settings.is_production,
    trust_proxy_headers=settings.trust_proxy_headers,
)

for router in (
    auth_router,
    properties_router,
    user_router,
    messages_router,
    tours_router,
    market_router,
    payments_router,
    assistant_router,
    seo_router,
    i18n_router,
    dashboards_router,
    images_router,
):
    app.include_router(router, prefix=settings.api_v1_prefix)

app.include_router(notifications_router)


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc.errors(), request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    return ErrorHandlerService.handle_validation_error(exc.errors(), request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_v1_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    Used by container health checks and load balancers.
    """
    if not await test_database_connection():
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "inmobi.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
