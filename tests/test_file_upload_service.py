# =============================================================================
# tests/test_file_upload_service.py - Upload Service Tests
# =============================================================================
# This module contains tests for:
# - MIME type filtering
# - Unique filename generation
# - The save_upload adapter (ordering, size limit, cleanup)
# - URL building, deletion and existence checks
# =============================================================================

import asyncio
import io
import os

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from app.exceptions import (
    FileDeleteError,
    FileTooLargeError,
    InvalidFileTypeError,
    UploadDestinationError,
)
from core.services import file_upload_service
from core.services.file_upload_service import (
    ALLOWED_IMAGE_TYPES,
    MAX_FILE_SIZE,
    FileUploadService,
)


def make_upload(data: bytes, filename: str = "product.png", content_type: str | None = "image/png") -> UploadFile:
    """Build an UploadFile the way the multipart parser does."""
    headers = Headers({"content-type": content_type}) if content_type else Headers({})
    return UploadFile(file=io.BytesIO(data), filename=filename, headers=headers)


# =============================================================================
# Configuration
# =============================================================================

class TestUploadConfig:
    """Tests for the configuration handed to the upload adapter."""

    def test_config_values(self, upload_service, tmp_path):
        config = upload_service.get_upload_config()

        assert config.destination == tmp_path / "uploads"
        assert config.allowed_types == ("jpg", "jpeg", "png", "gif", "webp")
        assert config.max_file_size == 10 * 1024 * 1024

    def test_from_settings(self, make_settings, tmp_path):
        settings = make_settings(UPLOAD_DIR=str(tmp_path / "images"), NGINX_BASE_URL="https://static.example.com")

        service = FileUploadService.from_settings(settings)

        assert service.get_upload_path() == tmp_path / "images"
        assert service.get_file_url("a.png") == "https://static.example.com/uploads/a.png"


# =============================================================================
# File Type Filter
# =============================================================================

class TestCheckFileType:
    """Tests for the MIME type filter."""

    @pytest.mark.parametrize("subtype", ALLOWED_IMAGE_TYPES)
    def test_accepts_image_types(self, subtype):
        FileUploadService.check_file_type(f"image/{subtype}")

    @pytest.mark.parametrize("content_type", [
        "application/pdf",
        "text/plain",
        "image/svg+xml",
        "image/bmp",
        "image/png; charset=binary",
        "",
        None,
    ])
    def test_rejects_other_types(self, content_type):
        with pytest.raises(InvalidFileTypeError) as exc_info:
            FileUploadService.check_file_type(content_type)

        assert exc_info.value.message == "Only image files are allowed!"
        assert exc_info.value.status_code == 400


# =============================================================================
# Filename Generation
# =============================================================================

class TestGenerateFilename:
    """Tests for unique stored names."""

    def test_keeps_extension_and_drops_name(self):
        filename = FileUploadService.generate_filename("holiday photo.JPG")

        assert filename.endswith(".JPG")
        assert "holiday" not in filename
        assert filename != "holiday photo.JPG"

    def test_unique_for_identical_originals(self):
        names = {FileUploadService.generate_filename("product.png") for _ in range(50)}
        assert len(names) == 50

    def test_only_last_extension_is_kept(self):
        assert FileUploadService.generate_filename("archive.tar.gz").endswith(".gz")

    def test_no_extension(self):
        filename = FileUploadService.generate_filename("README")
        assert "." not in filename

    def test_missing_name(self):
        assert len(FileUploadService.generate_filename(None)) == 36

    def test_path_components_are_discarded(self):
        filename = FileUploadService.generate_filename("../../etc/passwd.png")

        assert "/" not in filename
        assert ".." not in filename
        assert filename.endswith(".png")


# =============================================================================
# save_upload
# =============================================================================

class TestSaveUpload:
    """Tests for the upload adapter."""

    def test_stores_file_under_generated_name(self, upload_service, tmp_path):
        stored = asyncio.run(upload_service.save_upload(make_upload(b"\x89PNG data", "shoe.png")))

        assert stored.filename != "shoe.png"
        assert stored.filename.endswith(".png")
        assert stored.original_filename == "shoe.png"
        assert stored.content_type == "image/png"
        assert stored.size == 9
        assert stored.url == f"http://cdn.test/uploads/{stored.filename}"
        assert (tmp_path / "uploads" / stored.filename).read_bytes() == b"\x89PNG data"

    def test_creates_missing_directory(self, tmp_path):
        service = FileUploadService(upload_path=tmp_path / "a" / "b")

        stored = asyncio.run(service.save_upload(make_upload(b"gif", "x.gif", "image/gif")))

        assert (tmp_path / "a" / "b" / stored.filename).exists()

    def test_rejected_type_writes_nothing(self, upload_service, tmp_path):
        with pytest.raises(InvalidFileTypeError):
            asyncio.run(upload_service.save_upload(make_upload(b"%PDF", "doc.pdf", "application/pdf")))

        assert not (tmp_path / "uploads").exists()

    def test_rejects_oversized_file_and_removes_partial_write(self, tmp_path):
        service = FileUploadService(upload_path=tmp_path / "uploads", max_file_size=100)

        with pytest.raises(FileTooLargeError) as exc_info:
            asyncio.run(service.save_upload(make_upload(b"x" * 101)))

        assert exc_info.value.status_code == 413
        assert list((tmp_path / "uploads").iterdir()) == []

    def test_accepts_file_at_limit(self, tmp_path):
        service = FileUploadService(upload_path=tmp_path / "uploads", max_file_size=100)

        stored = asyncio.run(service.save_upload(make_upload(b"x" * 100)))

        assert stored.size == 100

    def test_declared_size_over_limit_is_rejected_early(self, upload_service):
        upload = make_upload(b"small")
        upload.size = MAX_FILE_SIZE + 1

        with pytest.raises(FileTooLargeError):
            asyncio.run(upload_service.save_upload(upload))

    def test_disk_work_runs_off_the_event_loop(self, upload_service, monkeypatch):
        offloaded = []

        async def record(func, *args):
            offloaded.append(getattr(func, "__name__", func))
            return func(*args)

        monkeypatch.setattr(file_upload_service, "run_in_threadpool", record)

        asyncio.run(upload_service.save_upload(make_upload(b"png" * 10)))

        assert offloaded[:2] == ["resolve_destination", "open"]
        assert "write" in offloaded
        assert offloaded[-1] == "close"

    def test_destination_error(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file")
        service = FileUploadService(upload_path=blocker / "uploads")

        with pytest.raises(UploadDestinationError):
            asyncio.run(service.save_upload(make_upload(b"png")))


# =============================================================================
# Stored File Helpers
# =============================================================================

class TestStoredFileHelpers:
    """Tests for URL, delete and exists helpers."""

    def test_get_file_url(self, upload_service):
        assert upload_service.get_file_url("abc.webp") == "http://cdn.test/uploads/abc.webp"

    def test_default_base_url(self):
        assert FileUploadService().get_file_url("a.png") == "http://localhost:3000/uploads/a.png"

    def test_delete_existing_file(self, upload_service, tmp_path):
        upload_service.resolve_destination()
        target = tmp_path / "uploads" / "old.png"
        target.write_bytes(b"png")

        upload_service.delete_file("old.png")

        assert not target.exists()

    @pytest.mark.parametrize("filename", ["missing.png", "bad\x00name.png"])
    def test_delete_missing_file_raises(self, upload_service, filename):
        with pytest.raises(FileDeleteError) as exc_info:
            upload_service.delete_file(filename)

        assert exc_info.value.message == f"Failed to delete file: {filename}"

    def test_delete_rejects_path_traversal(self, upload_service, tmp_path):
        outside = tmp_path / "keep.txt"
        outside.write_text("keep")

        with pytest.raises(FileDeleteError):
            upload_service.delete_file("../keep.txt")

        assert outside.exists()

    def test_exists(self, upload_service, tmp_path):
        upload_service.resolve_destination()
        (tmp_path / "uploads" / "here.png").write_bytes(b"png")

        assert upload_service.file_exists("here.png") is True

    def test_missing_file_does_not_exist(self, upload_service):
        assert upload_service.file_exists("missing.png") is False

    @pytest.mark.parametrize("filename", ["", "..", "../x.png", "a/b.png", "bad\x00name.png"])
    def test_invalid_names_do_not_exist(self, upload_service, filename):
        assert upload_service.file_exists(filename) is False

    def test_directory_does_not_exist(self, upload_service, tmp_path):
        (tmp_path / "uploads" / "sub").mkdir(parents=True)
        assert upload_service.file_exists("sub") is False

    def test_exists_after_save_and_not_after_delete(self, upload_service):
        stored = asyncio.run(upload_service.save_upload(make_upload(b"jpeg", "a.jpeg", "image/jpeg")))

        assert upload_service.file_exists(stored.filename)
        upload_service.delete_file(stored.filename)
        assert not upload_service.file_exists(stored.filename)
        assert os.listdir(upload_service.get_upload_path()) == []
