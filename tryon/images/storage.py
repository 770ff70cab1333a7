"""Image storage for product, user and try-on result images."""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from tryon.core.aws import S3Service
from tryon.core.config import Settings, get_settings
from tryon.core.exceptions import InvalidInputException, NotFoundException, StorageException
from tryon.products.models import Product

logger = logging.getLogger(__name__)

CATEGORY_PRODUCTS = "products"
CATEGORY_USER = "user"
CATEGORY_RESULTS = "results"

ALLOWED_EXTENSIONS = ("jpg", "jpeg", "png")

# S3 key prefix per category
_S3_PREFIXES = {
    CATEGORY_PRODUCTS: "products",
    CATEGORY_USER: "users",
    CATEGORY_RESULTS: "results",
}

_FORMAT_EXTENSIONS = {"JPEG": "jpg", "PNG": "png"}
_EXTENSION_CONTENT_TYPES = {"jpg": "image/jpeg", "jpeg": "image/jpeg", "png": "image/png"}


@dataclass(frozen=True)
class UploadedImage:
    """An image received from a client, fully read into memory."""

    filename: Optional[str]
    content_type: Optional[str]
    data: bytes

    @property
    def is_empty(self) -> bool:
        return not self.data


def sanitize_filename(filename: Optional[str]) -> str:
    """Strip anything that could escape the storage directory."""
    if filename is None:
        return "unknown"
    cleaned = re.sub(r"[^a-zA-Z0-9.-]", "_", filename)
    cleaned = re.sub(r"\.+", ".", cleaned)
    return cleaned.strip(".")


def file_extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return "jpg"
    return filename.rsplit(".", 1)[1].lower()


def sniff_image_extension(data: bytes) -> Optional[str]:
    """Return `png` / `jpg` for bytes Pillow can identify, else None."""
    try:
        with Image.open(BytesIO(data)) as img:
            return _FORMAT_EXTENSIONS.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        return None


class ImageStorageService:
    """
    Stores and resolves images on the configured backend.

    Locations returned by the `store_*` methods are filesystem paths for the
    `local` backend and object keys for the `s3` backend. They are opaque to
    callers and only ever handed back to this service.
    """

    def __init__(self, settings: Optional[Settings] = None, s3: Optional[S3Service] = None):
        self.settings = settings or get_settings()
        self.backend = (self.settings.STORAGE_BACKEND or "local").strip().lower()
        if self.backend not in ("local", "s3"):
            raise ValueError(f"Unsupported STORAGE_BACKEND: {self.settings.STORAGE_BACKEND}")
        self._s3 = s3

    @property
    def s3(self) -> S3Service:
        if self._s3 is None:
            self._s3 = S3Service(self.settings)
        return self._s3

    def _directory(self, category: str) -> Path:
        directories = {
            CATEGORY_PRODUCTS: self.settings.STORAGE_PRODUCTS_DIR,
            CATEGORY_USER: self.settings.STORAGE_USER_UPLOADS_DIR,
            CATEGORY_RESULTS: self.settings.STORAGE_RESULTS_DIR,
        }
        if category not in directories:
            raise InvalidInputException(f"Invalid image category: {category}")
        return Path(directories[category])

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_upload(self, image: UploadedImage) -> None:
        """Validate an uploaded file for size, type and decodability."""
        if image.is_empty:
            raise InvalidInputException("File cannot be empty")

        max_bytes = int(self.settings.STORAGE_MAX_FILE_BYTES)
        if len(image.data) > max_bytes:
            raise InvalidInputException(f"File size exceeds maximum allowed size of {max_bytes} bytes")

        allowed = [t.lower() for t in self.settings.STORAGE_ALLOWED_CONTENT_TYPES]
        if not image.content_type or image.content_type.lower() not in allowed:
            raise InvalidInputException(f"File type not allowed. Supported types: {allowed}")

        if not image.filename or file_extension(image.filename) not in ALLOWED_EXTENSIONS:
            raise InvalidInputException("Invalid file extension. Only .jpg, .jpeg, .png files are allowed")

        if sniff_image_extension(image.data) is None:
            raise InvalidInputException("File is not a valid JPEG or PNG image")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def store_product_image(self, image: UploadedImage, product_id: str) -> str:
        """Store a product image and return its location."""
        self.validate_upload(image)
        filename = f"{sanitize_filename(product_id)}.{file_extension(image.filename)}"
        location = self._write(CATEGORY_PRODUCTS, filename, image.data)
        logger.info(f"Stored product image: {image.filename} -> {location}")
        return location

    def store_user_image(self, image: UploadedImage) -> str:
        """Store a user uploaded image for try-on processing."""
        self.validate_upload(image)
        filename = f"{uuid.uuid4()}.{file_extension(image.filename)}"
        location = self._write(CATEGORY_USER, filename, image.data)
        logger.info(f"Stored user image: {image.filename} -> {location}")
        return location

    def store_result_image(self, data: bytes, job_id: str, extension: Optional[str] = None) -> str:
        """Store a generated try-on image. The extension follows the actual bytes."""
        extension = extension or sniff_image_extension(data) or "jpg"
        filename = f"{sanitize_filename(job_id)}.{extension}"
        location = self._write(CATEGORY_RESULTS, filename, data)
        logger.info(f"Stored result image: {location}")
        return location

    def _write(self, category: str, filename: str, data: bytes) -> str:
        content_type = _EXTENSION_CONTENT_TYPES.get(file_extension(filename), "application/octet-stream")
        try:
            if self.backend == "s3":
                key = f"{_S3_PREFIXES[category]}/{filename}"
                self.s3.upload_bytes(key, data, content_type=content_type)
                return key

            directory = self._directory(category)
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                logger.info(f"Created directory: {directory}")
            target = directory / filename
            target.write_bytes(data)
            return str(target)
        except (OSError, ClientError, BotoCoreError, ValueError) as e:
            raise StorageException(f"Failed to store image {filename}: {e}") from e

    def delete(self, location: str) -> None:
        """Remove a stored image. Failures are logged, not raised."""
        try:
            if self.backend == "s3":
                self.s3.delete_object(location)
            else:
                Path(location).unlink(missing_ok=True)
        except (OSError, ClientError, BotoCoreError, ValueError) as e:
            logger.warning(f"Failed to delete image {location}: {e}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def exists(self, location: str) -> bool:
        if self.backend == "s3":
            return self.s3.object_exists(location)
        return Path(location).is_file()

    def read_bytes(self, location: str) -> bytes:
        """Load stored image bytes."""
        try:
            if self.backend == "s3":
                return self.s3.download_bytes(location)
            return Path(location).read_bytes()
        except FileNotFoundError as e:
            raise NotFoundException(f"Image not found: {location}") from e
        except (OSError, ClientError, BotoCoreError, ValueError) as e:
            raise StorageException(f"Failed to read image {location}: {e}") from e

    def resolve_product_image(self, product: Product) -> Optional[str]:
        """
        Find where the image for a catalog product lives right now.

        Uploaded products carry their own location. Seeded products only have a
        catalog URL such as `/products/product-1.jpg`; its last segment names a
        file in STORAGE_CATALOG_DIR (local) or the URL maps to an object key (s3).
        """
        candidates = []
        if product.image_location:
            candidates.append(product.image_location)
        if product.image_url:
            if self.backend == "s3":
                key = self.s3.object_key(product.image_url)
                if key:
                    candidates.append(key)
            else:
                filename = product.image_url.rstrip("/").rsplit("/", 1)[-1]
                if filename:
                    candidates.append(str(Path(self.settings.STORAGE_CATALOG_DIR) / filename))

        for location in candidates:
            if self.exists(location):
                logger.debug(f"Product image location for {product.id}: {location}")
                return location
        return None

    # ------------------------------------------------------------------
    # Serving
    # ------------------------------------------------------------------

    def generate_public_url(self, location: str, category: str) -> str:
        """Public URL for a stored image."""
        if self.backend == "s3":
            return self.s3.get_public_url(location)
        filename = Path(location).name
        base = self.settings.PUBLIC_BASE_URL.rstrip("/")
        return f"{base}/api/images/{category}/{filename}"

    def get_image_path(self, category: str, filename: str) -> Path:
        """Filesystem path for serving a stored image (local backend)."""
        directory = self._directory(category)
        if not filename or sanitize_filename(filename) != filename:
            raise InvalidInputException(f"Invalid image filename: {filename}")
        path = (directory / filename).resolve()
        if path.parent != directory.resolve():
            raise InvalidInputException(f"Invalid image filename: {filename}")
        return path

    def get_object_key(self, category: str, filename: str) -> str:
        """Object key for serving a stored image (s3 backend)."""
        self._directory(category)
        if not filename or sanitize_filename(filename) != filename:
            raise InvalidInputException(f"Invalid image filename: {filename}")
        return f"{_S3_PREFIXES[category]}/{filename}"
