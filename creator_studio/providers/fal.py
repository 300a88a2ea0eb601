"""fal.ai image and video generation.

Images go through the synchronous endpoint (https://fal.run/<model>), which
returns the result in the response body. Image-to-video clips take minutes,
so they go through the queue API and are polled until done.

Supported models:
- fal-ai/flux/dev, fal-ai/flux-pro: text-to-image
- fal-ai/kling-video/v1.5/pro/image-to-video: Kling 1.5 Pro, 5s or 10s clips
- fal-ai/minimax-video/image-to-video, fal-ai/luma-dream-machine
"""

import asyncio
import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import httpx

from ..config import Config, MediaConfig
from .http import ProviderError, raise_for_provider

logger = logging.getLogger(__name__)


class AspectRatio(str, Enum):
    """Supported aspect ratios for image generation."""

    PORTRAIT = "9:16"  # shorts / reels
    LANDSCAPE = "16:9"
    SQUARE = "1:1"
    LANDSCAPE_4_3 = "4:3"
    PORTRAIT_3_4 = "3:4"


# fal.ai names sizes instead of ratios
IMAGE_SIZES = {
    AspectRatio.PORTRAIT: "portrait_16_9",
    AspectRatio.LANDSCAPE: "landscape_16_9",
    AspectRatio.SQUARE: "square_hd",
    AspectRatio.LANDSCAPE_4_3: "landscape_4_3",
    AspectRatio.PORTRAIT_3_4: "portrait_4_3",
}

IMAGE_MODELS = ("fal-ai/flux/dev", "fal-ai/flux-pro")
VIDEO_MODELS = (
    "fal-ai/kling-video/v1.5/pro/image-to-video",
    "fal-ai/minimax-video/image-to-video",
    "fal-ai/luma-dream-machine",
)
VIDEO_DURATIONS = ("5", "10")


@dataclass
class MediaResult:
    """A generated image or clip."""

    url: str
    model: str
    request_id: str | None = None


class MediaProvider(ABC):
    """Image and image-to-video generation."""

    def __init__(self, config: MediaConfig):
        self.config = config

    @abstractmethod
    async def generate_image(
        self,
        prompt: str,
        model: str | None = None,
        aspect_ratio: AspectRatio | str | None = None,
    ) -> MediaResult:
        """Generate one image from a text prompt."""

    @abstractmethod
    async def generate_video(
        self,
        image_url: str,
        motion_prompt: str,
        model: str | None = None,
        duration: str | None = None,
    ) -> MediaResult:
        """Animate an image into a short clip."""


class FalClient(MediaProvider):
    """Client for fal.ai image and video models."""

    SYNC_URL = "https://fal.run"
    QUEUE_URL = "https://queue.fal.run"

    def __init__(
        self,
        config: MediaConfig,
        api_key: str | None,
        client: httpx.AsyncClient | None = None,
        poll_interval: float = 5.0,
        max_wait_seconds: int = 600,
    ):
        """Initialize the fal.ai client.

        Args:
            config: Default models and sizes
            api_key: fal.ai API key
            client: Optional shared HTTP client (tests inject a mock transport)
            poll_interval: Seconds between queue status polls
            max_wait_seconds: Give up on a queued request after this long
        """
        super().__init__(config)
        if not api_key:
            raise ValueError(
                "fal.ai API key required. Set FAL_KEY environment variable "
                "or pass api_key parameter."
            )
        self.api_key = api_key
        self._client = client
        self.poll_interval = poll_interval
        self.max_wait_seconds = max_wait_seconds

    def _get_headers(self) -> dict[str, str]:
        """Get request headers for fal.ai API."""
        return {
            "Authorization": f"Key {self.api_key}",
            "Content-Type": "application/json",
        }

    def _client_or_new(self, timeout: float) -> httpx.AsyncClient:
        return self._client or httpx.AsyncClient(timeout=timeout)

    async def _close(self, client: httpx.AsyncClient) -> None:
        if client is not self._client:
            await client.aclose()

    async def generate_image(
        self,
        prompt: str,
        model: str | None = None,
        aspect_ratio: AspectRatio | str | None = None,
    ) -> MediaResult:
        model = model or self.config.image_model
        ratio = AspectRatio(aspect_ratio or self.config.aspect_ratio)
        payload = {
            "prompt": prompt,
            "image_size": IMAGE_SIZES[ratio],
            "num_inference_steps": 28,
            "guidance_scale": 3.5,
            "num_images": 1,
        }

        client = self._client_or_new(timeout=120.0)
        try:
            response = await client.post(
                f"{self.SYNC_URL}/{model}", headers=self._get_headers(), json=payload
            )
        finally:
            await self._close(client)

        raise_for_provider(response, "fal")
        images = response.json().get("images") or []
        if not images or not images[0].get("url"):
            raise ProviderError("fal", "No image returned")
        return MediaResult(url=images[0]["url"], model=model)

    async def generate_video(
        self,
        image_url: str,
        motion_prompt: str,
        model: str | None = None,
        duration: str | None = None,
    ) -> MediaResult:
        model = model or self.config.video_model
        duration = str(duration or self.config.video_duration)
        payload = {
            "image_url": image_url,
            "prompt": motion_prompt,
            "duration": duration,
        }

        client = self._client_or_new(timeout=60.0)
        try:
            response = await client.post(
                f"{self.QUEUE_URL}/{model}", headers=self._get_headers(), json=payload
            )
            raise_for_provider(response, "fal")
            request_id = response.json()["request_id"]
            video_url = await self._wait_for_completion(client, model, request_id)
        finally:
            await self._close(client)

        return MediaResult(url=video_url, model=model, request_id=request_id)

    async def _wait_for_completion(
        self,
        client: httpx.AsyncClient,
        model: str,
        request_id: str,
    ) -> str:
        """Poll for task completion and return the video URL.

        Raises:
            TimeoutError: If task doesn't complete in time
            ProviderError: If task fails
        """
        # Queue status lives under the base model path (first 2 segments),
        # e.g. fal-ai/kling-video/v1.5/pro/image-to-video -> fal-ai/kling-video
        base_model = "/".join(model.split("/")[:2])
        status_url = f"{self.QUEUE_URL}/{base_model}/requests/{request_id}/status"
        result_url = f"{self.QUEUE_URL}/{base_model}/requests/{request_id}"
        elapsed = 0.0

        while elapsed < self.max_wait_seconds:
            response = await client.get(status_url, headers=self._get_headers())
            raise_for_provider(response, "fal")
            data = response.json()
            status = data.get("status")

            if status == "COMPLETED":
                result = await client.get(result_url, headers=self._get_headers())
                raise_for_provider(result, "fal")
                video_url = (result.json().get("video") or {}).get("url")
                if video_url:
                    return video_url
                raise ProviderError("fal", "No video returned")

            if status == "FAILED":
                raise ProviderError("fal", f"fal.ai generation failed: {data.get('error', 'Unknown error')}")

            if status not in ("IN_QUEUE", "IN_PROGRESS"):
                raise ProviderError("fal", f"Unknown task status: {status}")

            logger.debug(
                "fal request %s: %s (queue position %s)",
                request_id,
                status,
                data.get("queue_position", "?"),
            )
            await asyncio.sleep(self.poll_interval)
            elapsed += self.poll_interval

        raise TimeoutError(
            f"fal.ai generation timed out after {self.max_wait_seconds} seconds"
        )


def _data_url(mime: str, payload: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(payload.encode()).decode()}"


class MockMediaProvider(MediaProvider):
    """Returns placeholder data: URLs; can be told to fail specific prompts.

    Data URLs keep mock runs offline, including the export download.
    """

    def __init__(self, config: MediaConfig | None = None, fail_on: set[str] | None = None):
        super().__init__(config or MediaConfig(provider="mock"))
        self.fail_on = fail_on or set()
        self.image_calls: list[str] = []
        self.video_calls: list[str] = []

    async def generate_image(
        self,
        prompt: str,
        model: str | None = None,
        aspect_ratio: AspectRatio | str | None = None,
    ) -> MediaResult:
        self.image_calls.append(prompt)
        if prompt in self.fail_on:
            raise ProviderError("mock", f"Image generation failed for: {prompt}")
        n = len(self.image_calls)
        return MediaResult(url=_data_url("image/png", f"mock-image-{n}"), model=model or "mock")

    async def generate_video(
        self,
        image_url: str,
        motion_prompt: str,
        model: str | None = None,
        duration: str | None = None,
    ) -> MediaResult:
        self.video_calls.append(image_url)
        if image_url in self.fail_on:
            raise ProviderError("mock", f"Video generation failed for: {image_url}")
        n = len(self.video_calls)
        return MediaResult(url=_data_url("video/mp4", f"mock-video-{n}"), model=model or "mock")


def get_media_provider(config: Config) -> MediaProvider:
    """Build the media provider named in config.media.provider."""
    if config.media.provider == "mock":
        return MockMediaProvider(config.media)
    if config.media.provider == "fal":
        return FalClient(config.media, config.api_keys.fal)
    raise ValueError(f"Unknown media provider: {config.media.provider}")
