# =============================================================================
# app/routers/products.py - Product Image Endpoints
# =============================================================================
# Upload and delete product images. Stored files are served by the
# /uploads static mount; these endpoints only write and remove them.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Path, Response, UploadFile, status

from app.auth import AuthUser, get_current_user
from app.dependencies import UploadServiceDep
from app.exceptions import FileNotFound
from core.services.file_upload_service import StoredFile

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/images",
    response_model=StoredFile,
    status_code=status.HTTP_201_CREATED,
)
async def upload_product_image(
    uploads: UploadServiceDep,
    file: Annotated[UploadFile, File(description="Image file (jpg, jpeg, png, gif, webp; max 10MB)")],
    user: AuthUser = Depends(get_current_user),
):
    """
    Upload a product image.

    The file is stored under a generated name that keeps the original
    extension. Returns the stored name and its public URL.
    """
    try:
        stored = await uploads.save_upload(file)
    finally:
        await file.close()

    logger.info(f"User {user.id} uploaded product image {stored.filename}")
    return stored


@router.delete(
    "/images/{filename}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_product_image(
    uploads: UploadServiceDep,
    filename: Annotated[str, Path(description="Stored filename returned by the upload endpoint")],
    user: AuthUser = Depends(get_current_user),
):
    """Delete a previously uploaded product image."""
    if not uploads.file_exists(filename):
        raise FileNotFound(filename)

    uploads.delete_file(filename)
    logger.info(f"User {user.id} deleted product image {filename}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
