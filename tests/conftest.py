"""Shared fixtures: isolated settings, fake generator, wired services and an API client."""

import threading
import time
from io import BytesIO
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from tryon.core.config import Settings
from tryon.core.dependencies import (
    get_dispatcher,
    get_image_generator,
    get_image_storage,
    get_job_store,
    get_product_service,
    get_prompt_generator,
)
from tryon.images.storage import ImageStorageService, UploadedImage
from tryon.jobs.runner import TryOnDispatcher
from tryon.jobs.store import JobStore
from tryon.products.models import ProductCreate
from tryon.products.service import ProductService
from tryon.prompts.service import PromptGeneratorService


def png_bytes(color=(255, 0, 0), size=(8, 8)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def jpeg_bytes(color=(0, 0, 255), size=(8, 8)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="JPEG")
    return buf.getvalue()


def upload(filename="photo.png", data=None, content_type="image/png") -> UploadedImage:
    return UploadedImage(filename=filename, content_type=content_type, data=png_bytes() if data is None else data)


class FakeGenerator:
    """Stands in for the Gemini client. Can block on a gate, sleep or fail."""

    def __init__(self, result=None, error=None, delay=0.0, gate=None):
        self.result = png_bytes((0, 255, 0)) if result is None else result
        self.error = error
        self.delay = delay
        self.gate = gate
        self.calls = []
        self._lock = threading.Lock()

    def generate(self, product_image, user_image, prompt):
        with self._lock:
            self.calls.append((product_image, user_image, prompt))
        if self.gate is not None:
            self.gate.wait(timeout=10)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result

    def configuration_status(self):
        return "fake generator"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        PUBLIC_BASE_URL="http://testserver",
        SEED_PRODUCTS=False,
        GEMINI_API_KEY="test-key",
        TRYON_TIMEOUT_SECONDS=5,
        TRYON_MAX_WORKERS=4,
        JOB_RETENTION_SECONDS=0,
        STORAGE_BACKEND="local",
        STORAGE_PRODUCTS_DIR=str(tmp_path / "products"),
        STORAGE_USER_UPLOADS_DIR=str(tmp_path / "user-images"),
        STORAGE_RESULTS_DIR=str(tmp_path / "results"),
        STORAGE_CATALOG_DIR=str(tmp_path / "catalog"),
    )


@pytest.fixture
def storage(settings):
    return ImageStorageService(settings)


@pytest.fixture
def catalog_dir(settings):
    path = Path(settings.STORAGE_CATALOG_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def products(storage, catalog_dir):
    """Catalog with p1 (image on disk) and p-missing (no image file)."""
    service = ProductService(storage)
    (catalog_dir / "p1.png").write_bytes(png_bytes((10, 20, 30)))
    service.create_product_with_id(
        "p1",
        ProductCreate(name="Linen Shirt", category="shirts", description="Relaxed summer shirt", image_url="/products/p1.png"),
    )
    service.create_product_with_id(
        "p-missing",
        ProductCreate(name="Ghost Jacket", category="jackets", image_url="/products/p-missing.jpg"),
    )
    return service


@pytest.fixture
def store():
    return JobStore()


@pytest.fixture
def prompts():
    return PromptGeneratorService()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def make_dispatcher(store, products, storage, prompts, settings):
    """Build dispatchers with custom generators or settings; all are shut down afterwards."""
    created = []

    def _make(generator, store=store, settings=settings, storage=storage):
        dispatcher = TryOnDispatcher(
            store=store,
            products=products,
            storage=storage,
            prompts=prompts,
            generator=generator,
            settings=settings,
        )
        created.append(dispatcher)
        return dispatcher

    yield _make
    for dispatcher in created:
        dispatcher.shutdown(wait=True)


@pytest.fixture
def dispatcher(make_dispatcher, generator):
    return make_dispatcher(generator)


@pytest.fixture
def wait_for_terminal():
    def _wait(store, job_id, timeout=5.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            job = store.get(job_id)
            if job is not None and job.status.is_terminal:
                return job
            time.sleep(0.01)
        raise AssertionError(f"job {job_id} did not finish within {timeout}s: {store.get(job_id)}")

    return _wait


@pytest.fixture
def client(store, storage, products, prompts, generator, dispatcher):
    from tryon.main import app

    app.dependency_overrides[get_job_store] = lambda: store
    app.dependency_overrides[get_image_storage] = lambda: storage
    app.dependency_overrides[get_product_service] = lambda: products
    app.dependency_overrides[get_prompt_generator] = lambda: prompts
    app.dependency_overrides[get_image_generator] = lambda: generator
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
