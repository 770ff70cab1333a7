"""Gemini image model client for virtual try-on generation."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from tryon.core.config import Settings, get_settings
from tryon.core.exceptions import ExternalServiceException, GenerationTimeoutException
from tryon.images.storage import sniff_image_extension

logger = logging.getLogger(__name__)

GENERATION_CONFIG = {
    "temperature": 0.4,
    "topK": 32,
    "topP": 1.0,
    "responseModalities": ["TEXT", "IMAGE"],
}

SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
]


def _mime_type(data: bytes) -> str:
    return "image/png" if sniff_image_extension(data) == "png" else "image/jpeg"


class GeminiImageService:
    """
    Calls the Gemini image model over REST.

    `generate` is synchronous and may take tens of seconds; callers run it off
    the request path.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        self.settings = settings or get_settings()
        self.api_key = self.settings.GEMINI_API_KEY
        self.api_url = self.settings.GEMINI_API_URL
        self._client = client or httpx.Client(timeout=float(self.settings.TRYON_TIMEOUT_SECONDS))

    def is_available(self) -> bool:
        """Check if the Gemini API key is configured."""
        return bool(self.api_key and self.api_key.strip())

    def configuration_status(self) -> str:
        if self.is_available():
            return "Gemini API configured and ready for virtual try-on"
        return "Gemini API not configured - set GEMINI_API_KEY to enable virtual try-on"

    def validate_configuration(self) -> bool:
        """Log the configuration state at startup. Returns True when usable."""
        ok = True
        if not self.is_available():
            logger.error("Gemini API key is not configured (GEMINI_API_KEY)")
            ok = False
        else:
            logger.info(f"Gemini API key is configured (length: {len(self.api_key)})")
        if not (self.api_url or "").strip():
            logger.error("Gemini API URL is not configured (GEMINI_API_URL)")
            ok = False
        else:
            logger.info(f"Gemini API URL is configured: {self.api_url}")
        if not ok:
            logger.warning("Gemini configuration incomplete - virtual try-on will not work")
        return ok

    def generate(self, product_image: bytes, user_image: bytes, prompt: str) -> bytes:
        """
        Generate a try-on image from the product image and the customer's photo.

        Returns the generated image bytes. Raises ExternalServiceException on any
        failure, GenerationTimeoutException when the request times out.
        """
        if not self.is_available():
            raise ExternalServiceException("GEMINI_API_KEY not configured. Please set the environment variable.")

        logger.info(f"Calling Gemini API - product: {len(product_image)} bytes, customer: {len(user_image)} bytes")
        body = self.build_request_body(prompt, product_image, user_image)

        try:
            response = self._client.post(
                self.api_url,
                json=body,
                headers={"x-goog-api-key": self.api_key},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise GenerationTimeoutException(f"Virtual try-on generation timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise ExternalServiceException(
                f"Gemini API returned error: {e.response.status_code} {e.response.text[:300]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalServiceException(f"Virtual try-on generation failed: {e}") from e

        return self.extract_image(data)

    @staticmethod
    def build_request_body(prompt: str, product_image: bytes, user_image: bytes) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = [{"text": prompt}]
        for image in (product_image, user_image):
            parts.append({
                "inline_data": {
                    "mime_type": _mime_type(image),
                    "data": base64.b64encode(image).decode("ascii"),
                }
            })
        return {
            "contents": [{"parts": parts}],
            "generationConfig": GENERATION_CONFIG,
            "safetySettings": SAFETY_SETTINGS,
        }

    @staticmethod
    def extract_image(data: Dict[str, Any]) -> bytes:
        """Pull the first inline image out of candidates[0].content.parts."""
        candidates = (data or {}).get("candidates") or []
        if not candidates:
            raise ExternalServiceException("No candidates found in Gemini response")

        content = candidates[0].get("content")
        if not content:
            raise ExternalServiceException("No content found in Gemini candidate")

        parts = content.get("parts") or []
        if not parts:
            raise ExternalServiceException("No parts found in Gemini content")

        for part in parts:
            # REST responses use camelCase; some SDK dumps use snake_case.
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                try:
                    return base64.b64decode(inline["data"], validate=True)
                except ValueError as e:
                    raise ExternalServiceException(f"Gemini returned undecodable image data: {e}") from e

        raise ExternalServiceException("No image data found in Gemini response parts")

    def close(self) -> None:
        self._client.close()
