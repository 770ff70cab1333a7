"""Core module - config, exceptions, middleware, dependencies."""

from tryon.core.config import get_settings, Settings
from tryon.core.exceptions import (
    AppException,
    NotFoundException,
    BadRequestException,
    InvalidInputException,
    ExternalServiceException,
    GenerationTimeoutException,
    StorageException,
    ServiceUnavailableException,
)

__all__ = [
    "get_settings",
    "Settings",
    "AppException",
    "NotFoundException",
    "BadRequestException",
    "InvalidInputException",
    "ExternalServiceException",
    "GenerationTimeoutException",
    "StorageException",
    "ServiceUnavailableException",
]
