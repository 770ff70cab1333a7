"""Product catalog models and schemas."""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    """Schema to create a product."""
    name: str = Field(..., min_length=1, max_length=100)
    sku: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = Field(None, description="Public URL or catalog path of the product image")
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None


class ProductUpdate(BaseModel):
    """Schema to update a product. The image is kept as-is."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    sku: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=50)
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None


class Product(BaseModel):
    """Product record returned to clients."""
    id: str
    name: str
    sku: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    image_url: Optional[str] = None
    original_filename: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    # Storage location of an uploaded image; never serialized.
    image_location: Optional[str] = Field(default=None, exclude=True)


class ProductListResponse(BaseModel):
    """List response for the product grid."""
    products: List[Product]
    count: int


class ProductStats(BaseModel):
    """Catalog statistics."""
    total_products: int
    last_created: Optional[datetime] = None
