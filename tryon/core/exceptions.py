"""
Custom application exceptions.
"""

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    def __init__(self, detail: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, detail: str = "Bad request"):
        super().__init__(detail=detail, status_code=status.HTTP_400_BAD_REQUEST)


class InvalidInputException(BadRequestException):
    """Malformed or missing submission fields. Raised before anything is queued."""

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(detail=detail)


class ExternalServiceException(AppException):
    """The image generation service errored."""

    def __init__(self, detail: str = "External service failure", status_code: int = status.HTTP_502_BAD_GATEWAY):
        super().__init__(detail=detail, status_code=status_code)


class GenerationTimeoutException(ExternalServiceException):
    """The image generation service did not answer in time."""

    def __init__(self, detail: str = "Image generation timed out"):
        super().__init__(detail=detail, status_code=status.HTTP_504_GATEWAY_TIMEOUT)


class StorageException(AppException):
    """Reading or writing image bytes failed."""

    def __init__(self, detail: str = "Storage failure"):
        super().__init__(detail=detail, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


class ServiceUnavailableException(AppException):
    """The service cannot accept work right now."""

    def __init__(self, detail: str = "Service unavailable"):
        super().__init__(detail=detail, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


def error_message(exc: BaseException, limit: int = 1200) -> str:
    """Human-readable message for a failure, suitable for a job record."""
    if isinstance(exc, HTTPException):
        message = str(exc.detail)
    else:
        message = str(exc) or type(exc).__name__
    if len(message) > limit:
        message = message[:limit] + "…"
    return message
