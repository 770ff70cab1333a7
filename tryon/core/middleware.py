"""Shared FastAPI middleware."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse

from tryon.core.config import get_settings

logger = logging.getLogger(__name__)


class MaxBodySizeMiddleware(BaseHTTPMiddleware):
    """
    Reject requests with bodies larger than MAX_REQUEST_BODY_BYTES.

    Uploads carry two images, so the limit sits above the per-file limit
    enforced by the image storage.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        settings = get_settings()
        limit = int(settings.MAX_REQUEST_BODY_BYTES)

        content_length = request.headers.get("content-length")
        if content_length:
            try:
                if int(content_length) > limit:
                    return JSONResponse({"detail": "Payload too large."}, status_code=413)
            except ValueError:
                pass

        # For chunked / missing content-length, read body and enforce size.
        # Starlette caches request.body() so downstream handlers still can read it.
        try:
            body = await request.body()
        except Exception:
            return JSONResponse({"detail": "Invalid request body."}, status_code=400)

        if body and len(body) > limit:
            return JSONResponse({"detail": "Payload too large."}, status_code=413)

        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its status and duration, tagged with a request id."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        request_id = request.headers.get("x-request-id") or f"req-{uuid.uuid4().hex[:8]}"
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[{request_id}] {request.method} {request.url.path} -> unhandled error")
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        response.headers["X-Request-ID"] = request_id
        return response
