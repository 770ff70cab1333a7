"""Service layer for the in-memory product catalog."""

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from tryon.core.exceptions import BadRequestException, NotFoundException
from tryon.images.storage import CATEGORY_PRODUCTS, ImageStorageService, UploadedImage
from tryon.products.models import Product, ProductCreate, ProductStats, ProductUpdate

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ProductService:
    """Product CRUD backed by a lock-guarded dict."""

    def __init__(self, storage: ImageStorageService):
        self.storage = storage
        self._products: Dict[str, Product] = {}
        self._lock = threading.Lock()

    def create_product(self, request: ProductCreate, image: UploadedImage) -> Product:
        """
        Create a product from a multipart upload.

        The image is validated and stored first; nothing is added to the catalog
        if that fails.
        """
        product_id = str(uuid.uuid4())
        location = self.storage.store_product_image(image, product_id)
        now = _now()
        fields = request.model_dump()
        fields["image_url"] = self.storage.generate_public_url(location, CATEGORY_PRODUCTS)
        product = Product(
            id=product_id,
            original_filename=image.filename,
            image_location=location,
            created_at=now,
            updated_at=now,
            **fields,
        )
        with self._lock:
            self._products[product_id] = product
        logger.info(f"Created product: {product.name} ({product_id})")
        return product

    def create_product_from_json(self, request: ProductCreate) -> Product:
        """Create a product whose image already lives at `image_url`."""
        return self.create_product_with_id(str(uuid.uuid4()), request)

    def create_product_with_id(self, product_id: str, request: ProductCreate) -> Product:
        if not request.image_url:
            raise BadRequestException("image_url is required")
        now = _now()
        product = Product(id=product_id, created_at=now, updated_at=now, **request.model_dump())
        with self._lock:
            if product_id in self._products:
                raise BadRequestException(f"Product already exists: {product_id}")
            self._products[product_id] = product
        logger.info(f"Created product: {product.name} ({product_id})")
        return product

    def get_all_products(self) -> List[Product]:
        """All products, newest first."""
        with self._lock:
            products = list(self._products.values())
        return sorted(products, key=lambda p: p.created_at, reverse=True)

    def find_product(self, product_id: str) -> Optional[Product]:
        with self._lock:
            return self._products.get(product_id)

    def get_product(self, product_id: str) -> Product:
        product = self.find_product(product_id)
        if product is None:
            raise NotFoundException(f"Product not found: {product_id}")
        return product

    def product_exists(self, product_id: str) -> bool:
        return self.find_product(product_id) is not None

    def update_product(self, product_id: str, update: ProductUpdate) -> Product:
        """Apply the non-null fields that were sent. The image is left unchanged."""
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        with self._lock:
            current = self._products.get(product_id)
            if current is None:
                raise NotFoundException(f"Product not found: {product_id}")
            updated = current.model_copy(update={**changes, "updated_at": _now()})
            self._products[product_id] = updated
        logger.info(f"Updated product: {product_id}")
        return updated

    def delete_product(self, product_id: str) -> None:
        with self._lock:
            if self._products.pop(product_id, None) is None:
                raise NotFoundException(f"Product not found: {product_id}")
        logger.info(f"Deleted product: {product_id}")

    def get_stats(self) -> ProductStats:
        with self._lock:
            products = list(self._products.values())
        last_created = max((p.created_at for p in products), default=None)
        return ProductStats(total_products=len(products), last_created=last_created)
