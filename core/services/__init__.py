# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .file_upload_service import (
    ALLOWED_IMAGE_TYPES,
    MAX_FILE_SIZE,
    FileUploadService,
    StoredFile,
    UploadConfig,
)

__all__ = [
    "ALLOWED_IMAGE_TYPES",
    "MAX_FILE_SIZE",
    "FileUploadService",
    "StoredFile",
    "UploadConfig",
]
