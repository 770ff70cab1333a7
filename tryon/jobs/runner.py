"""Try-on job dispatcher: validates submissions and runs generation in the background."""

from __future__ import annotations

import concurrent.futures
import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from tryon.core.config import Settings, get_settings
from tryon.core.exceptions import (
    ExternalServiceException,
    GenerationTimeoutException,
    InvalidInputException,
    NotFoundException,
    ServiceUnavailableException,
    error_message,
)
from tryon.images.storage import CATEGORY_RESULTS, ImageStorageService, UploadedImage
from tryon.jobs.ids import new_job_id
from tryon.jobs.models import Job, JobStatus
from tryon.jobs.store import JobStore
from tryon.products.service import ProductService
from tryon.prompts.service import PromptGeneratorService

logger = logging.getLogger(__name__)

UPLOADED_PRODUCT_NAME = "uploaded-product"
UPLOADED_PRODUCT_CATEGORY = "general"


class ImageGenerator(Protocol):
    def generate(self, product_image: bytes, user_image: bytes, prompt: str) -> bytes:
        ...


def _is_present(image: Optional[UploadedImage]) -> bool:
    # Browsers send an empty, nameless part for an untouched file input.
    return image is not None and not (image.is_empty and not image.filename)


class TryOnDispatcher:
    """
    Owns the lifecycle of try-on jobs.

    `submit` does all validation and file writes on the caller's thread and
    returns a QUEUED job. Generation runs on a bounded worker pool; the
    external call itself runs on a second pool so it can be abandoned after
    TRYON_TIMEOUT_SECONDS. A job that cannot get a generation slot within
    that time fails with a capacity error instead of a timeout.
    """

    def __init__(
        self,
        store: JobStore,
        products: ProductService,
        storage: ImageStorageService,
        prompts: PromptGeneratorService,
        generator: ImageGenerator,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.products = products
        self.storage = storage
        self.prompts = prompts
        self.generator = generator
        self.timeout_seconds = float(self.settings.TRYON_TIMEOUT_SECONDS)

        workers = max(1, int(self.settings.TRYON_MAX_WORKERS))
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tryon-job")
        # Timed-out calls keep their thread until they return, so leave room beside them.
        self._generation_pool = ThreadPoolExecutor(max_workers=workers * 2, thread_name_prefix="tryon-generate")

    @property
    def estimated_duration_seconds(self) -> int:
        return int(math.ceil(self.timeout_seconds))

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(
        self,
        user_image: Optional[UploadedImage],
        product_id: Optional[str] = None,
        product_image: Optional[UploadedImage] = None,
        prompt: Optional[str] = None,
    ) -> Job:
        """
        Accept a try-on request and return the QUEUED job.

        Exactly one of `product_id` / `product_image` must be given. Raises
        InvalidInputException, NotFoundException or StorageException before
        any job record exists.
        """
        product_id = (product_id or "").strip() or None
        has_upload = _is_present(product_image)

        if product_id and has_upload:
            raise InvalidInputException("Provide either product_id or product_image, not both")
        if not product_id and not has_upload:
            raise InvalidInputException("Either product_id or product_image is required")
        if user_image is None or user_image.is_empty:
            raise InvalidInputException("User image is required")

        product = self.products.get_product(product_id) if product_id else None

        if prompt and prompt.strip():
            resolved_prompt = prompt
        elif product is not None:
            resolved_prompt = self.prompts.resolve(product)
        else:
            resolved_prompt = self.prompts.generate_optimized_prompt(
                product_image.filename or UPLOADED_PRODUCT_NAME,
                UPLOADED_PRODUCT_CATEGORY,
            )

        self.storage.validate_upload(user_image)
        if has_upload:
            self.storage.validate_upload(product_image)

        job_id = new_job_id()
        written = []
        try:
            user_location = self.storage.store_user_image(user_image)
            written.append(user_location)
            product_location = self.storage.store_product_image(product_image, job_id) if has_upload else None
        except Exception:
            self._discard_files(written)
            raise
        if product_location:
            written.append(product_location)

        self._prune_expired()

        job = Job(
            job_id=job_id,
            status=JobStatus.QUEUED,
            source_product_id=product_id,
            prompt=resolved_prompt,
            created_at=datetime.now(timezone.utc),
            estimated_duration_seconds=self.estimated_duration_seconds,
        )
        self.store.put(job)

        try:
            self._executor.submit(self._run, job_id, product_id, product_location, user_location, resolved_prompt)
        except RuntimeError as e:
            # Executor already shut down
            self.store.discard(job_id)
            self._discard_files(written)
            logger.error(f"Could not schedule job {job_id}: {e}")
            raise ServiceUnavailableException("Try-on service is shutting down") from e

        logger.info(f"Queued try-on job {job_id} (product: {product_id or 'uploaded image'})")
        return job

    def _discard_files(self, locations) -> None:
        for location in locations:
            self.storage.delete(location)

    def _prune_expired(self) -> None:
        retention = int(self.settings.JOB_RETENTION_SECONDS or 0)
        if retention > 0:
            self.store.prune_completed(timedelta(seconds=retention))

    # ------------------------------------------------------------------
    # Background execution
    # ------------------------------------------------------------------

    def _run(
        self,
        job_id: str,
        product_id: Optional[str],
        product_location: Optional[str],
        user_location: str,
        prompt: str,
    ) -> None:
        try:
            self.store.transition(job_id, JobStatus.RUNNING)
        except (KeyError, RuntimeError):
            logger.exception(f"Job {job_id} could not be started")
            return

        logger.info(f"Processing try-on job {job_id}")
        try:
            location = product_location or self._resolve_product_image(product_id)
            product_bytes = self.storage.read_bytes(location)
            user_bytes = self.storage.read_bytes(user_location)

            result = self._generate(product_bytes, user_bytes, prompt)

            result_location = self.storage.store_result_image(result, job_id)
            result_url = self.storage.generate_public_url(result_location, CATEGORY_RESULTS)
        except Exception as e:
            logger.exception(f"Try-on job {job_id} failed: {e}")
            self.store.transition(job_id, JobStatus.FAILED, error_message=error_message(e))
            return

        self.store.transition(job_id, JobStatus.SUCCEEDED, result_image_url=result_url)
        logger.info(f"Try-on job {job_id} completed: {result_url}")

    def _resolve_product_image(self, product_id: Optional[str]) -> str:
        # Looked up again here so product edits made after submit are picked up.
        product = self.products.find_product(product_id) if product_id else None
        location = self.storage.resolve_product_image(product) if product is not None else None
        if not location:
            raise NotFoundException("Product image not found")
        return location

    def _generate(self, product_bytes: bytes, user_bytes: bytes, prompt: str) -> bytes:
        started = threading.Event()

        def call() -> bytes:
            started.set()
            return self.generator.generate(product_bytes, user_bytes, prompt)

        future = self._generation_pool.submit(call)
        # The timeout covers the call itself, not time spent waiting for a slot.
        if not started.wait(timeout=self.timeout_seconds) and future.cancel():
            raise ServiceUnavailableException(
                f"No image generation capacity available after {self.timeout_seconds:g} seconds"
            )
        try:
            result = future.result(timeout=self.timeout_seconds)
        except concurrent.futures.TimeoutError as e:
            future.cancel()
            raise GenerationTimeoutException(
                f"Image generation timed out after {self.timeout_seconds:g} seconds"
            ) from e
        if not result:
            raise ExternalServiceException("Image generation returned no image data")
        return result

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs. In-flight generation calls are not interrupted."""
        self._executor.shutdown(wait=wait)
        self._generation_pool.shutdown(wait=False)
        logger.info("Try-on dispatcher shut down")
