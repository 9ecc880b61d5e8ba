# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error carries a machine-readable code and, where possible, a
# suggestion telling the caller how to fix it.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class MLMException(Exception):
    """
    Base exception for the Multi-Level Marketing API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "MLM_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Database Exceptions
# =============================================================================

class DatabaseConfigError(MLMException):
    """Raised when neither connection form is fully configured."""

    def __init__(self, missing: list[str]):
        super().__init__(
            message=f"Missing database configuration: {', '.join(missing)}",
            code="DATABASE_CONFIG_ERROR",
            status_code=500,
            suggestion="Please set DATABASE_URL or HOST, USER, PASSWORD, DATABASE",
            details={"missing": missing}
        )


class DatabasePingError(MLMException):
    """Raised when the liveness query cannot reach the database."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Database ping failed: {error}",
            code="DATABASE_UNAVAILABLE",
            status_code=503,
            suggestion="Check that the database is running and reachable",
            details={"error": error}
        )


# =============================================================================
# Upload Exceptions
# =============================================================================

class InvalidFileTypeError(MLMException):
    """Raised when an upload's declared MIME type is not an allowed image type."""

    def __init__(self, content_type: str | None, allowed: list[str]):
        super().__init__(
            message="Only image files are allowed!",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Upload one of: {', '.join(allowed)}",
            details={"content_type": content_type, "allowed_types": allowed}
        )


class FileTooLargeError(MLMException):
    """Raised when an uploaded file exceeds the size limit."""

    def __init__(self, max_bytes: int):
        max_mb = max_bytes // (1024 * 1024)
        super().__init__(
            message=f"File too large (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"max_bytes": max_bytes}
        )


class UploadDestinationError(MLMException):
    """Raised when the upload directory cannot be created."""

    def __init__(self, path: str, error: str):
        super().__init__(
            message=f"Upload directory unavailable: {error}",
            code="UPLOAD_DESTINATION_ERROR",
            status_code=500,
            suggestion="Check that the server can write to its upload directory",
            details={"path": path, "error": error}
        )


class FileDeleteError(MLMException):
    """Raised when an uploaded file cannot be removed."""

    def __init__(self, filename: str, error: str | None = None):
        super().__init__(
            message=f"Failed to delete file: {filename}",
            code="FILE_DELETE_ERROR",
            status_code=500,
            details={"filename": filename, "error": error} if error else {"filename": filename}
        )


class FileNotFound(MLMException):
    """Raised when an uploaded file referenced by name does not exist."""

    def __init__(self, filename: str):
        super().__init__(
            message=f"File not found: {filename}",
            code="FILE_NOT_FOUND",
            status_code=404,
            suggestion="Check the filename returned by the upload endpoint",
            details={"filename": filename}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def mlm_exception_handler(
    request: Request,
    exc: MLMException
) -> JSONResponse:
    """
    Convert MLMException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
