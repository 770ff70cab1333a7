"""
Application configuration using Pydantic Settings.
Loads from environment variables / .env file.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "Virtual Try-On API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    SEED_PRODUCTS: bool = True

    # Two images plus form fields
    MAX_REQUEST_BODY_BYTES: int = 25_000_000

    # Gemini
    GEMINI_API_KEY: str = ""
    GEMINI_API_URL: str = (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "gemini-2.5-flash-image-preview:generateContent"
    )

    # Try-on jobs
    TRYON_TIMEOUT_SECONDS: float = 120
    TRYON_MAX_WORKERS: int = 4
    JOB_RETENTION_SECONDS: int = 0  # 0 keeps finished jobs for the process lifetime

    # Image storage: "local" or "s3"
    STORAGE_BACKEND: str = "local"
    STORAGE_PRODUCTS_DIR: str = "uploads/products"
    STORAGE_USER_UPLOADS_DIR: str = "uploads/user-images"
    STORAGE_RESULTS_DIR: str = "uploads/results"
    STORAGE_CATALOG_DIR: str = "../frontend/public/products"
    STORAGE_MAX_FILE_BYTES: int = 10 * 1024 * 1024
    STORAGE_ALLOWED_CONTENT_TYPES: List[str] = ["image/jpeg", "image/jpg", "image/png"]

    # AWS
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "us-east-1"
    AWS_S3_BUCKET: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
