"""HTTP Image Generator — calls the image generation service over httpx.

Invariants:
    - generate() returns a non-empty asset URL or raises ExternalGenerationError
    - Timeouts, transport errors, non-2xx responses and bodies without image_url are
      all provider failures (no partial result)

Design Decisions:
    - One AsyncClient per call: generation is rare and long-running, pooling buys nothing
    - transport is injectable so tests use httpx.MockTransport instead of the network
"""

import logging

import httpx

from thumbnail_ai.core.domain_types import AspectRatio
from thumbnail_ai.core.errors import ExternalGenerationError

logger = logging.getLogger(__name__)

PROVIDER_SIZES: dict[AspectRatio, str] = {
    AspectRatio.WIDE: "1792x1024",
    AspectRatio.TALL: "1024x1792",
    AspectRatio.PORTRAIT: "1024x1792",
    AspectRatio.SQUARE: "1024x1024",
    AspectRatio.STANDARD: "1024x1024",
}


def provider_size(aspect_ratio: AspectRatio) -> str:
    return PROVIDER_SIZES.get(aspect_ratio, PROVIDER_SIZES[AspectRatio.WIDE])


class HttpImageGenerator:
    """ImageGenerator backed by a JSON-over-HTTP image service."""

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def generate(self, prompt: str, aspect_ratio: AspectRatio) -> str:
        payload = {
            "prompt": prompt,
            "aspect_ratio": aspect_ratio.value,
            "size": provider_size(aspect_ratio),
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        logger.info(
            f"Generating image ({aspect_ratio.value}, {payload['size']}): {prompt[:50]}...",
        )
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport,
            ) as client:
                response = await client.post(self.url, json=payload, headers=headers)
        except httpx.TimeoutException:
            raise ExternalGenerationError("Image service timeout", "timeout")
        except httpx.RequestError as e:
            raise ExternalGenerationError(f"Network error: {e}", "connection_error")

        if response.status_code != 200:
            raise ExternalGenerationError(
                _error_detail(response), f"http_{response.status_code}",
            )
        try:
            data = response.json()
        except ValueError:
            raise ExternalGenerationError("Response is not JSON", "invalid_response")

        image_url = data.get("image_url") if isinstance(data, dict) else None
        if not isinstance(image_url, str) or not image_url:
            raise ExternalGenerationError("No image generated", "invalid_response")
        return image_url


def _error_detail(response: httpx.Response) -> str:
    default = f"Image service error: HTTP {response.status_code}"
    try:
        data = response.json()
    except ValueError:
        return default
    detail = data.get("detail") if isinstance(data, dict) else None
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict) and isinstance(detail.get("message"), str):
        return detail["message"]
    return default
