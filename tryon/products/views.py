"""Product catalog API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from tryon.core.dependencies import get_product_service, read_upload
from tryon.core.exceptions import InvalidInputException
from tryon.products.models import (
    Product,
    ProductCreate,
    ProductListResponse,
    ProductStats,
    ProductUpdate,
)
from tryon.products.service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])


def _split_list(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or None


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(
    image: Optional[UploadFile] = File(None),
    name: str = Form(...),
    sku: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    category: Optional[str] = Form(None),
    sizes: Optional[str] = Form(None, description="Comma separated"),
    colors: Optional[str] = Form(None, description="Comma separated"),
    service: ProductService = Depends(get_product_service),
):
    """
    Create a product from a multipart form with an image upload.

    `sizes` and `colors` are comma separated lists.
    """
    upload = await read_upload(image)
    if upload is None or upload.is_empty:
        raise InvalidInputException("Product image is required")
    try:
        request = ProductCreate(
            name=name,
            sku=sku,
            color=color,
            description=description,
            price=price,
            category=category,
            sizes=_split_list(sizes),
            colors=_split_list(colors),
        )
    except ValidationError as e:
        raise InvalidInputException(f"Invalid product data: {e.errors()[0].get('msg')}") from e
    return await run_in_threadpool(service.create_product, request, upload)


@router.post("/json", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product_json(
    request: ProductCreate,
    service: ProductService = Depends(get_product_service),
):
    """Create a product whose image is already hosted at `image_url`."""
    return service.create_product_from_json(request)


@router.get("", response_model=ProductListResponse)
async def list_products(service: ProductService = Depends(get_product_service)):
    """Get all products, newest first."""
    products = service.get_all_products()
    return ProductListResponse(products=products, count=len(products))


@router.get("/stats", response_model=ProductStats)
async def get_product_stats(service: ProductService = Depends(get_product_service)):
    return service.get_stats()


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: str, service: ProductService = Depends(get_product_service)):
    return service.get_product(product_id)


@router.put("/{product_id}", response_model=Product)
async def update_product(
    product_id: str,
    update: ProductUpdate,
    service: ProductService = Depends(get_product_service),
):
    """Update product details. The image cannot be changed here."""
    return service.update_product(product_id, update)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: str, service: ProductService = Depends(get_product_service)):
    service.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
