# =============================================================================
# app/main.py - FastAPI Application Factory
# =============================================================================
# Builds the Multi-Level Marketing API application: static uploads, API docs,
# CORS, exception handlers and routers.
#
# Nothing is created at import time. The entry point (app/__main__.py)
# validates the environment, creates the database handle and calls
# create_app(); tests call create_app() with their own settings.
#
# Usage:
#   python -m app
# =============================================================================

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from app.config import Settings
from app.exceptions import MLMException, mlm_exception_handler
from app.routers import health, products
from core.services.file_upload_service import FileUploadService, UPLOAD_URL_PREFIX
from lib.database import Database

logger = logging.getLogger(__name__)

API_TITLE = "Multi-Level Marketing API"
API_VERSION = "1.0"
DOCS_URL = "/api-docs"
DOCS_SITE_TITLE = "Multi-Level Marketing API Documentation"
CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]

OPENAPI_TAGS = [
    {"name": "Products", "description": "Product management endpoints"},
    {"name": "Users", "description": "User management endpoints"},
    {"name": "FAQ", "description": "FAQ management endpoints"},
    {"name": "Admin", "description": "Admin operations endpoints"},
    {"name": "Bank Details", "description": "User bank details management"},
    {"name": "Payments", "description": "Payment processing with Razorpay"},
    {"name": "Wishlist", "description": "User wishlist management"},
    {"name": "Health", "description": "API health and database checks"},
]


def _log_startup(settings: Settings) -> None:
    port = settings.server_port
    logger.info("Starting server")
    logger.info(f"Time: {datetime.now(timezone.utc).isoformat()}")
    logger.info(f"Environment: {settings.NODE_ENV}")
    logger.info(f"Configured port: {port}")
    logger.info(f"API Documentation: http://localhost:{port}{DOCS_URL}")
    logger.info(f"Health Check: http://localhost:{port}/health")
    logger.info(f"CORS Origins: {', '.join(settings.cors_origins_list)}")


def create_app(
    settings: Settings,
    database: Database | None = None,
    uploads: FileUploadService | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Validated application settings
        database: Database handle; /health reports "not_configured" without one
        uploads: Upload service; built from settings when omitted

    Raises:
        UploadDestinationError: If the upload directory cannot be created
    """
    uploads = uploads or FileUploadService.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        - Startup: log where the server will be reachable (uvicorn binds
          the socket after this runs)
        - Shutdown: release the database pool
        """
        _log_startup(settings)

        yield

        logger.info("Shutting down Multi-Level Marketing API")
        if database is not None:
            await database.dispose()

    app = FastAPI(
        title=API_TITLE,
        description="Complete API documentation for Multi-Level Marketing application",
        version=API_VERSION,
        # Served by the custom route below so the page gets its own title
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.uploads = uploads

    # =========================================================================
    # Static Files
    # =========================================================================

    upload_dir = uploads.resolve_destination()
    app.mount(
        UPLOAD_URL_PREFIX,
        StaticFiles(directory=upload_dir),
        name="uploads",
    )

    # =========================================================================
    # API Documentation
    # =========================================================================

    @app.get(DOCS_URL, include_in_schema=False)
    async def swagger_ui() -> HTMLResponse:
        return get_swagger_ui_html(
            openapi_url=app.openapi_url,
            title=DOCS_SITE_TITLE,
            swagger_ui_parameters={"persistAuthorization": True},
        )

    # =========================================================================
    # Middleware
    # =========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=["*"],
    )

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    app.add_exception_handler(MLMException, mlm_exception_handler)

    @app.exception_handler(Exception)
    async def handle_general_exception(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception(f"Unexpected error: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            }
        )

    # =========================================================================
    # Routers
    # =========================================================================

    app.include_router(
        health.router,
        tags=["Health"]
    )

    app.include_router(
        products.router,
        prefix="/products",
        tags=["Products"]
    )

    @app.get("/", tags=["Root"])
    async def root():
        """
        Root endpoint - returns API info.
        """
        return {
            "name": API_TITLE,
            "version": API_VERSION,
            "docs": DOCS_URL,
            "health": "/health",
        }

    return app
