"""Tests for the product catalog service and demo seed."""

import pytest

from conftest import png_bytes, upload
from tryon.core.exceptions import BadRequestException, InvalidInputException, NotFoundException
from tryon.products.models import ProductCreate, ProductUpdate
from tryon.products.seed import INITIAL_PRODUCTS, seed_products
from tryon.products.service import ProductService


@pytest.fixture
def service(storage):
    return ProductService(storage)


def test_create_product_with_upload(service, storage):
    product = service.create_product(ProductCreate(name="Tee", category="shirts"), upload("tee.png"))

    assert product.original_filename == "tee.png"
    assert product.image_url == f"http://testserver/api/images/products/{product.id}.png"
    assert storage.read_bytes(product.image_location) == png_bytes()
    assert "image_location" not in product.model_dump()
    assert service.get_product(product.id) == product


def test_create_product_rejects_bad_image(service):
    with pytest.raises(InvalidInputException):
        service.create_product(ProductCreate(name="Tee"), upload("tee.png", b"nope"))
    assert service.get_all_products() == []


def test_create_from_json_requires_image_url(service):
    with pytest.raises(BadRequestException):
        service.create_product_from_json(ProductCreate(name="Tee"))
    product = service.create_product_from_json(ProductCreate(name="Tee", image_url="https://cdn/x.jpg"))
    assert service.product_exists(product.id)


def test_duplicate_id_rejected(service):
    service.create_product_with_id("1", ProductCreate(name="A", image_url="/products/a.jpg"))
    with pytest.raises(BadRequestException):
        service.create_product_with_id("1", ProductCreate(name="B", image_url="/products/b.jpg"))


def test_get_missing_product(service):
    assert service.find_product("x") is None
    assert not service.product_exists("x")
    with pytest.raises(NotFoundException):
        service.get_product("x")


def test_list_is_newest_first(service):
    first = service.create_product_with_id("a", ProductCreate(name="A", image_url="/products/a.jpg"))
    second = service.create_product_with_id("b", ProductCreate(name="B", image_url="/products/b.jpg"))
    ids = [p.id for p in service.get_all_products()]
    if second.created_at > first.created_at:
        assert ids == ["b", "a"]
    assert set(ids) == {"a", "b"}


def test_update_is_partial_and_keeps_image(service):
    original = service.create_product_with_id(
        "1", ProductCreate(name="Tee", price=10, category="shirts", image_url="/products/a.jpg")
    )
    updated = service.update_product("1", ProductUpdate(price=12.5, name=None))

    assert updated.price == 12.5
    assert updated.name == "Tee"
    assert updated.category == "shirts"
    assert updated.image_url == "/products/a.jpg"
    assert updated.updated_at >= original.updated_at


def test_update_missing_product(service):
    with pytest.raises(NotFoundException):
        service.update_product("x", ProductUpdate(name="New"))


def test_delete_product(service):
    service.create_product_with_id("1", ProductCreate(name="Tee", image_url="/products/a.jpg"))
    service.delete_product("1")
    assert not service.product_exists("1")
    with pytest.raises(NotFoundException):
        service.delete_product("1")


def test_stats(service):
    empty = service.get_stats()
    assert empty.total_products == 0
    assert empty.last_created is None

    service.create_product_with_id("1", ProductCreate(name="A", image_url="/products/a.jpg"))
    latest = service.create_product_with_id("2", ProductCreate(name="B", image_url="/products/b.jpg"))
    stats = service.get_stats()
    assert stats.total_products == 2
    assert stats.last_created == latest.created_at


def test_seed_loads_demo_catalog(service):
    assert seed_products(service) == len(INITIAL_PRODUCTS) == 5
    jacket = service.get_product("1")
    assert jacket.name == "Classic Blue Denim Jacket"
    assert jacket.category == "jackets"
    assert jacket.image_url == "/products/product-1.jpg"
    assert jacket.colors == ["Blue", "Light Blue", "Dark Blue"]
    assert service.get_product("5").category == "dresses"


def test_seed_is_idempotent(service):
    seed_products(service)
    assert seed_products(service) == 0
    assert service.get_stats().total_products == 5
