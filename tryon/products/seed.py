"""Demo catalog loaded at startup. Images are served by the frontend under /products/."""

import logging

from tryon.core.exceptions import BadRequestException
from tryon.products.models import ProductCreate
from tryon.products.service import ProductService

logger = logging.getLogger(__name__)

INITIAL_PRODUCTS = [
    ProductCreate(
        name="Classic Blue Denim Jacket",
        description=(
            "Timeless blue denim jacket perfect for casual outings. Made from high-quality "
            "cotton denim with a comfortable fit and durable construction."
        ),
        price=79.99,
        category="jackets",
        image_url="/products/product-1.jpg",
        sizes=["S", "M", "L", "XL", "XXL"],
        colors=["Blue", "Light Blue", "Dark Blue"],
    ),
    ProductCreate(
        name="Casual Knit Sweater",
        description=(
            "Cozy and comfortable knit sweater perfect for everyday wear. Soft fabric with "
            "excellent warmth and breathability."
        ),
        price=59.99,
        category="sweaters",
        image_url="/products/product-2.jpg",
        sizes=["XS", "S", "M", "L", "XL"],
        colors=["Gray", "Navy", "Beige", "Black"],
    ),
    ProductCreate(
        name="Classic White Shirt",
        description=(
            "Timeless white button-down shirt suitable for both formal and casual occasions. "
            "Premium cotton fabric with excellent fit."
        ),
        price=45.99,
        category="shirts",
        image_url="/products/product-3.avif",
        sizes=["S", "M", "L", "XL", "XXL"],
        colors=["White", "Light Blue", "Pink", "Light Gray"],
    ),
    ProductCreate(
        name="Black Pullover Hoodie",
        description=(
            "Comfortable black hoodie with front pocket and adjustable drawstring. Perfect "
            "for casual wear and workouts."
        ),
        price=69.99,
        category="hoodies",
        image_url="/products/product-4.jpg",
        sizes=["S", "M", "L", "XL", "XXL"],
        colors=["Black", "Gray", "Navy", "Burgundy"],
    ),
    ProductCreate(
        name="Summer Floral Dress",
        description=(
            "Light and breezy summer dress with beautiful floral pattern. Perfect for warm "
            "weather and special occasions."
        ),
        price=89.99,
        category="dresses",
        image_url="/products/product-5.avif",
        sizes=["XS", "S", "M", "L", "XL"],
        colors=["Floral Print", "Solid Blue", "Solid Pink", "White"],
    ),
]


def seed_products(service: ProductService) -> int:
    """Load the demo products with ids "1".."5". Existing ids are skipped."""
    created = 0
    for index, request in enumerate(INITIAL_PRODUCTS, start=1):
        product_id = str(index)
        try:
            service.create_product_with_id(product_id, request)
            created += 1
        except BadRequestException as e:
            logger.warning(f"Skipping seed product {product_id}: {e.detail}")
    logger.info(f"Initialized {created} products")
    return created
