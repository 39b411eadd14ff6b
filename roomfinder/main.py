"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError as PydanticValidationError
import logging

from roomfinder.config import settings
from roomfinder.database import test_database_connection, create_tables, close_db_connection
from roomfinder.routers import auth_router, listings_router, storage_router
from roomfinder.utils.exceptions import APIException
from roomfinder.services.error_handler import ErrorHandlerService
from roomfinder.middleware.request_context import RequestContextMiddleware

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    db_connected = await test_database_connection()
    if not db_connected:
        logger.error("Failed to connect to database on startup")
    elif settings.is_sqlite or settings.is_development:
        await create_tables()

    yield

    # Shutdown
    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Room rental listings: owners post rooms with photos, seekers browse and search.

    ## Features

    * **Listings**: Post, edit and delete room listings
    * **Search**: Filter by text, property type, tenant preference and rent range
    * **Images**: Upload photos to listings, served from object storage
    * **Authentication**: Email and password sign up with JWT sessions

    ## Authentication

    Browsing is public. Use `/api/v1/auth/login` to obtain a token and send it
    in the Authorization header as `Bearer <token>` to manage your listings.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "Sign up, sign in and session lookup"
        },
        {
            "name": "Listings",
            "description": "Room listing management, search and image uploads"
        },
        {
            "name": "Storage",
            "description": "Public access to uploaded images"
        },
        {
            "name": "Health",
            "description": "System health endpoints"
        }
    ],
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Processing-Time"],
)

app.add_middleware(
    RequestContextMiddleware,
    slow_request_threshold=settings.slow_request_threshold,
    enable_request_logging=settings.debug
)

# Include API routers
app.include_router(auth_router, prefix=settings.api_v1_prefix)
app.include_router(listings_router, prefix=settings.api_v1_prefix)
# Image URLs are public and live outside the versioned API
app.include_router(storage_router)


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    """Handle Pydantic validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors with appropriate error responses."""
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions such as unknown routes with structured error responses."""
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint providing basic API information.
    """
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
    Used by Docker health checks and load balancers.
    """
    db_healthy = await test_database_connection()

    if not db_healthy:
        raise HTTPException(
            status_code=503,
            detail="Database connection failed"
        )

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
        "roomfinder.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
