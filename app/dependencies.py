# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# create_app() stores the settings, database and upload service on app.state;
# these functions hand them to route handlers via Depends().
# =============================================================================

from typing import Annotated

from fastapi import Depends, Request

from app.config import Settings
from core.services.file_upload_service import FileUploadService
from lib.database import Database


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was created with."""
    return request.app.state.settings


def get_database(request: Request) -> Database | None:
    """
    Database handle, or None when the app was created without one.
    """
    return request.app.state.database


def get_upload_service(request: Request) -> FileUploadService:
    """Upload service bound to the configured upload directory."""
    return request.app.state.uploads


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
DatabaseDep = Annotated[Database | None, Depends(get_database)]
UploadServiceDep = Annotated[FileUploadService, Depends(get_upload_service)]
