# =============================================================================
# core/services/file_upload_service.py - Product Image Uploads
# =============================================================================
# Stores product images on local disk under the upload directory and builds
# public URLs for them. Files are served back by the /uploads static mount.
#
# Each step of an upload is a plain function that either returns a value or
# raises. save_upload() composes them in order:
#   1. check_file_type     - reject anything that is not an allowed image type
#   2. resolve_destination - create the upload directory if needed
#   3. generate_filename   - <uuid4><original extension>
#   4. write in chunks     - abort once the size limit is exceeded
#
# Disk work inside save_upload() runs in the threadpool so a large upload
# does not block the event loop.
# =============================================================================

from __future__ import annotations

import logging
import os
import re
import stat
import uuid
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from app.config import Settings
from app.exceptions import (
    FileDeleteError,
    FileTooLargeError,
    InvalidFileTypeError,
    UploadDestinationError,
)

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("jpg", "jpeg", "png", "gif", "webp")
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
UPLOAD_URL_PREFIX = "/uploads"
CHUNK_SIZE = 64 * 1024

# Matches on the subtype of the declared MIME type, e.g. image/png
_IMAGE_TYPE_PATTERN = re.compile(r"/(" + "|".join(ALLOWED_IMAGE_TYPES) + r")$")


@dataclass(frozen=True)
class UploadConfig:
    """Settings the upload adapter enforces for every file."""
    destination: Path
    allowed_types: tuple[str, ...] = ALLOWED_IMAGE_TYPES
    max_file_size: int = MAX_FILE_SIZE


class StoredFile(BaseModel):
    """An uploaded file after it has been written to disk."""
    filename: str
    original_filename: str | None = None
    content_type: str | None = None
    size: int
    url: str


class FileUploadService:
    """
    Service for product image files on local disk.

    Constructed with its upload directory and public base URL so tests
    can point it at a temporary directory.
    """

    def __init__(
        self,
        upload_path: str | Path = "uploads",
        base_url: str = "http://localhost:3000",
        max_file_size: int = MAX_FILE_SIZE,
    ):
        self.upload_path = Path(upload_path)
        self.base_url = base_url.rstrip("/")
        self.max_file_size = max_file_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileUploadService":
        return cls(upload_path=settings.UPLOAD_DIR, base_url=settings.public_base_url)

    def get_upload_config(self) -> UploadConfig:
        return UploadConfig(
            destination=self.upload_path,
            max_file_size=self.max_file_size,
        )

    def get_upload_path(self) -> Path:
        return self.upload_path

    # -------------------------------------------------------------------------
    # Upload Steps
    # -------------------------------------------------------------------------

    def resolve_destination(self) -> Path:
        """
        Ensure the upload directory exists and return it.

        Raises:
            UploadDestinationError: If the directory cannot be created
        """
        try:
            self.upload_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create upload directory {self.upload_path}: {e}")
            raise UploadDestinationError(str(self.upload_path), str(e)) from e
        return self.upload_path

    @staticmethod
    def generate_filename(original_filename: str | None) -> str:
        """
        Generate a unique filename that keeps the original extension.

        Only the extension of the original name survives, so client-supplied
        names never reach the filesystem.
        """
        _, extension = os.path.splitext(os.path.basename(original_filename or ""))
        return f"{uuid.uuid4()}{extension}"

    @staticmethod
    def check_file_type(content_type: str | None) -> None:
        """
        Accept only declared image types (jpg, jpeg, png, gif, webp).

        Raises:
            InvalidFileTypeError: For any other or missing MIME type
        """
        if content_type and _IMAGE_TYPE_PATTERN.search(content_type):
            return
        raise InvalidFileTypeError(content_type, list(ALLOWED_IMAGE_TYPES))

    async def save_upload(self, upload: UploadFile) -> StoredFile:
        """
        Validate and write an uploaded file.

        Nothing is written when the type is rejected. A file that turns
        out to exceed the size limit is removed before raising.

        Raises:
            InvalidFileTypeError: Declared type is not an allowed image
            UploadDestinationError: Upload directory cannot be created
            FileTooLargeError: File exceeds the size limit
        """
        config = self.get_upload_config()
        self.check_file_type(upload.content_type)

        if upload.size is not None and upload.size > config.max_file_size:
            raise FileTooLargeError(config.max_file_size)

        destination = await run_in_threadpool(self.resolve_destination)
        filename = self.generate_filename(upload.filename)
        file_path = destination / filename

        size = 0
        try:
            out = await run_in_threadpool(open, file_path, "wb")
            try:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > config.max_file_size:
                        raise FileTooLargeError(config.max_file_size)
                    await run_in_threadpool(out.write, chunk)
            finally:
                await run_in_threadpool(out.close)
        except Exception:
            file_path.unlink(missing_ok=True)
            raise

        logger.info(f"Stored upload {upload.filename!r} as {filename} ({size} bytes)")

        return StoredFile(
            filename=filename,
            original_filename=upload.filename,
            content_type=upload.content_type,
            size=size,
            url=self.get_file_url(filename),
        )

    # -------------------------------------------------------------------------
    # Stored File Helpers
    # -------------------------------------------------------------------------

    def get_file_url(self, filename: str) -> str:
        return f"{self.base_url}{UPLOAD_URL_PREFIX}/{filename}"

    def _resolve(self, filename: str) -> Path | None:
        """Path of a stored file, or None if the name is not a bare filename."""
        if not filename or filename in (".", "..") or "\x00" in filename:
            return None
        if os.path.basename(filename) != filename:
            return None
        return self.upload_path / filename

    def delete_file(self, filename: str) -> None:
        """
        Remove a stored file.

        Raises:
            FileDeleteError: If the file cannot be removed (including when
                it does not exist)
        """
        file_path = self._resolve(filename)
        try:
            if file_path is None:
                raise FileNotFoundError(f"Invalid filename: {filename!r}")
            os.remove(file_path)
        except (OSError, ValueError) as e:
            logger.error(f"Error deleting file {filename}: {e}")
            raise FileDeleteError(filename, str(e)) from e

        logger.info(f"File deleted: {filename}")

    def file_exists(self, filename: str) -> bool:
        """
        Return True if a stored file with this name exists.

        Directories do not count, and any access failure counts as missing.
        """
        file_path = self._resolve(filename)
        if file_path is None:
            return False
        try:
            mode = os.stat(file_path).st_mode
        except (OSError, ValueError):
            return False
        return stat.S_ISREG(mode)
