"""Image serving routes."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, RedirectResponse

from tryon.core.dependencies import get_image_storage
from tryon.core.exceptions import NotFoundException
from tryon.images.storage import ImageStorageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/images", tags=["Images"])


@router.get("/{category}/{filename}")
async def serve_image(
    category: str,
    filename: str,
    storage: ImageStorageService = Depends(get_image_storage),
):
    """
    Serve a stored image.

    `category` is one of `products`, `user` or `results`. On the S3 backend the
    client is redirected to a short-lived presigned URL.
    """
    if storage.backend == "s3":
        key = storage.get_object_key(category, filename)
        if not storage.exists(key):
            raise NotFoundException(f"Image not found: {category}/{filename}")
        return RedirectResponse(storage.s3.generate_presigned_get_url(key))

    path = storage.get_image_path(category, filename)
    if not path.is_file():
        logger.warning(f"Image not found: {category}/{filename}")
        raise NotFoundException(f"Image not found: {category}/{filename}")

    return FileResponse(
        path,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )
