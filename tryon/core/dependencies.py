"""
Common dependencies for FastAPI routes.

Each provider returns a process-wide instance. Tests swap them out through
`app.dependency_overrides`.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, UploadFile

from tryon.ai.gemini import GeminiImageService
from tryon.core.config import get_settings
from tryon.images.storage import ImageStorageService, UploadedImage
from tryon.jobs.runner import TryOnDispatcher
from tryon.jobs.service import JobQueryService
from tryon.jobs.store import JobStore
from tryon.products.service import ProductService
from tryon.prompts.service import PromptGeneratorService


@lru_cache
def get_job_store() -> JobStore:
    return JobStore()


@lru_cache
def get_image_storage() -> ImageStorageService:
    return ImageStorageService(get_settings())


@lru_cache
def get_product_service() -> ProductService:
    return ProductService(get_image_storage())


@lru_cache
def get_prompt_generator() -> PromptGeneratorService:
    return PromptGeneratorService()


@lru_cache
def get_image_generator() -> GeminiImageService:
    return GeminiImageService(get_settings())


@lru_cache
def get_dispatcher() -> TryOnDispatcher:
    return TryOnDispatcher(
        store=get_job_store(),
        products=get_product_service(),
        storage=get_image_storage(),
        prompts=get_prompt_generator(),
        generator=get_image_generator(),
        settings=get_settings(),
    )


def get_job_query_service(store: JobStore = Depends(get_job_store)) -> JobQueryService:
    return JobQueryService(store)


async def read_upload(upload: Optional[UploadFile]) -> Optional[UploadedImage]:
    """Read a multipart file into memory. Returns None when the part is absent."""
    if upload is None:
        return None
    data = await upload.read()
    return UploadedImage(filename=upload.filename, content_type=upload.content_type, data=data)
