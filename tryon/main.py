"""
Virtual Try-On API - Main application entry point.

Customers upload a photo, pick a product, and get back an AI generated image
of themselves wearing it.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tryon.core.config import get_settings
from tryon.core.dependencies import get_dispatcher, get_image_generator, get_product_service
from tryon.core.middleware import MaxBodySizeMiddleware, RequestLoggingMiddleware
from tryon.images.views import router as images_router
from tryon.jobs.views import router as tryon_router
from tryon.products.seed import seed_products
from tryon.products.views import router as products_router

settings = get_settings()
API_PREFIX = "/api"

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _provider(app: FastAPI, dependency):
    # Honour test overrides outside of request handling too.
    return app.dependency_overrides.get(dependency, dependency)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    generator = _provider(app, get_image_generator)()
    if hasattr(generator, "validate_configuration"):
        generator.validate_configuration()
    if settings.SEED_PRODUCTS:
        seed_products(_provider(app, get_product_service)())
    dispatcher = _provider(app, get_dispatcher)()
    yield
    # Shutdown
    dispatcher.shutdown(wait=False)
    if hasattr(generator, "close"):
        generator.close()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
## Virtual Try-On API

Submit a customer photo together with a catalog product (or an uploaded
product image) and poll the returned job until the generated image is ready.

### Features

- **Try-On Jobs**: asynchronous generation with status polling
- **Products**: in-memory catalog with image uploads
- **Images**: serves stored product, user and result images
    """,
    lifespan=lifespan,
    docs_url=f"{API_PREFIX}/docs",
    redoc_url=f"{API_PREFIX}/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Two images per request; reject anything far larger before parsing.
app.add_middleware(MaxBodySizeMiddleware)
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred"})


routers = [
    tryon_router,
    products_router,
    images_router,
]

for router in routers:
    app.include_router(router, prefix=API_PREFIX)


@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    generator = _provider(app, get_image_generator)()
    return {
        "status": "healthy",
        "generator": generator.configuration_status(),
        "storage": settings.STORAGE_BACKEND,
        "version": settings.APP_VERSION,
    }
