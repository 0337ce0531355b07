"""Image generation provider with support for multiple backends."""

from __future__ import annotations

import logging
import time
from io import BytesIO
from typing import TYPE_CHECKING, Any

import httpx
from PIL import Image

from .config import ImageProviderConfig
from .interfaces import ImageResult

if TYPE_CHECKING:
    from ..content.models import MediaAsset, TemplateDefinition

_logger = logging.getLogger("ai_calls")

FAL_BASE_URL = "https://fal.run"

# Template and slide renders carry no platform size of their own
DEFAULT_RENDER_SIZE = (1080, 1080)

# Above this quality the OpenAI backend is asked for its "hd" tier
OPENAI_HD_QUALITY_THRESHOLD = 90


class ImageProvider:
    """Image backend implementing ImageGenerationService.

    Supports two backends:
    - fal.ai (Flux, Nano Banana), called over HTTP
    - OpenAI (DALL-E 3)

    Every generated image is downloaded once and measured with Pillow so the
    returned ImageResult carries real dimensions.

    Usage:
        provider = ImageProvider("fal_flux", config.image_providers["fal_flux"])
        result = await provider.generate_image(prompt, asset, (1080, 1350), 85)
        await provider.close()
    """

    def __init__(
        self,
        provider_name: str,
        provider_config: ImageProviderConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize image provider.

        Args:
            provider_name: Key of the provider in the configuration.
            provider_config: Backend settings.
            http_client: Optional client, owned by the caller when given.
        """
        self.provider_name = provider_name
        self.config = provider_config
        self._http_client = http_client
        self._owns_client = http_client is None
        self._total_calls = 0

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=float(self.config.timeout))
        return self._http_client

    async def close(self):
        """Close HTTP client."""
        if self._http_client and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def generate_image(
        self,
        prompt: str,
        base_asset: MediaAsset | None,
        dimensions: tuple[int, int],
        quality: int,
    ) -> ImageResult:
        """Generate an image, optionally derived from a brand asset.

        Args:
            prompt: Text description of the image.
            base_asset: Asset used as visual reference, if any.
            dimensions: Target (width, height) in pixels.
            quality: Requested quality, 1-100.
        """
        references = [base_asset.url] if base_asset is not None else []
        return await self._generate(prompt, references, dimensions, quality, task="image")

    async def generate_template_image(
        self,
        template: TemplateDefinition,
        base_asset: MediaAsset | None,
        background_url: str | None,
        text_overlays: dict[str, str],
        quality: int,
    ) -> ImageResult:
        """Render a template with its text areas filled in."""
        prompt = (
            f"Compose the '{template.name}' design template over the background image. "
            f"Render these texts exactly: {_describe_overlays(text_overlays)}."
        )
        references = [url for url in (background_url, template.url) if url]
        if base_asset is not None and background_url is None:
            references.insert(0, base_asset.url)
        return await self._generate(prompt, references, DEFAULT_RENDER_SIZE, quality, task="template")

    async def generate_carousel_slide(
        self,
        template: TemplateDefinition | None,
        base_asset: MediaAsset,
        text_overlays: dict[str, str],
        carousel_context: dict[str, Any],
        quality: int,
    ) -> ImageResult:
        """Render one carousel slide, keeping the style of earlier slides."""
        index = carousel_context.get("slide_index", 1)
        total = carousel_context.get("total_slides", 1)
        topic = carousel_context.get("topic", "")
        prompt = (
            f"Slide {index} of {total} of a social media carousel about: {topic}. "
            f"Render these texts exactly: {_describe_overlays(text_overlays)}."
        )
        previous = list(carousel_context.get("previous_image_urls", []))
        if previous:
            prompt += " Match the visual style of the previous slides."

        references = [base_asset.url]
        if template is not None and template.url:
            references.append(template.url)
        # Last slide is enough to keep the series consistent
        references.extend(previous[-1:])
        return await self._generate(prompt, references, DEFAULT_RENDER_SIZE, quality, task=f"slide_{index}")

    async def _generate(
        self,
        prompt: str,
        reference_urls: list[str],
        size: tuple[int, int],
        quality: int,
        task: str,
    ) -> ImageResult:
        _logger.info(
            f"IMAGE_REQUEST | provider:{self.provider_name} | model:{self.config.model} | "
            f"task:{task} | size:{size[0]}x{size[1]} | quality:{quality} | "
            f"references:{len(reference_urls)}\n"
            f"--- PROMPT ---\n{prompt}\n"
            f"--- END REQUEST ---"
        )
        start_time = time.time()

        if self.config.type == "fal":
            image_url = await self._generate_fal(prompt, reference_urls, size)
        elif self.config.type == "openai":
            image_url = await self._generate_openai(prompt, size, quality)
        else:
            raise ValueError(f"Unknown provider type: {self.config.type}")

        result = await self._measure(image_url)
        duration = time.time() - start_time
        self._total_calls += 1

        _logger.info(
            f"IMAGE_RESPONSE | provider:{self.provider_name} | task:{task} | "
            f"duration:{duration:.2f}s | {result.width}x{result.height} | "
            f"bytes:{result.size_bytes} | url:{result.url}"
        )
        return result

    async def _generate_fal(
        self,
        prompt: str,
        reference_urls: list[str],
        size: tuple[int, int],
    ) -> str:
        """Generate image using the fal.ai HTTP API."""
        api_key = self.config.get_api_key()
        if not api_key:
            raise ValueError(f"{self.config.api_key_env or 'FAL_KEY'} not set")

        width, height = size
        request_data: dict[str, Any] = {
            "prompt": prompt,
            "image_size": {"width": width, "height": height},
            **self.config.settings,
        }
        if reference_urls:
            request_data["image_urls"] = reference_urls

        base_url = self.config.get_base_url() or FAL_BASE_URL
        client = await self._get_http_client()
        response = await client.post(
            f"{base_url}/{self.config.model}",
            json=request_data,
            headers={"Authorization": f"Key {api_key}"},
        )
        response.raise_for_status()
        result = response.json()

        # Get image URL from result
        if result.get("images"):
            return result["images"][0]["url"]
        if "image" in result:
            return result["image"]["url"]
        raise ValueError(f"Unexpected fal.ai response format: {result}")

    async def _generate_openai(self, prompt: str, size: tuple[int, int], quality: int) -> str:
        """Generate image using OpenAI DALL-E API."""
        from openai import AsyncOpenAI

        api_key = self.config.get_api_key()
        if not api_key:
            raise ValueError(f"{self.config.api_key_env or 'OPENAI_API_KEY'} not set")

        client = AsyncOpenAI(api_key=api_key, base_url=self.config.get_base_url())

        # DALL-E 3 only supports specific sizes
        width, height = size
        if height > width:
            dalle_size = "1024x1792"
        elif width > height:
            dalle_size = "1792x1024"
        else:
            dalle_size = "1024x1024"

        response = await client.images.generate(
            model=self.config.model,
            prompt=prompt,
            size=dalle_size,
            quality="hd" if quality >= OPENAI_HD_QUALITY_THRESHOLD else "standard",
            response_format="url",
            n=1,
        )
        return response.data[0].url

    async def _measure(self, image_url: str) -> ImageResult:
        """Download the generated image and read its real size."""
        client = await self._get_http_client()
        response = await client.get(image_url)
        response.raise_for_status()

        img = Image.open(BytesIO(response.content))
        return ImageResult(
            url=image_url,
            width=img.width,
            height=img.height,
            size_bytes=len(response.content),
        )

    @property
    def total_calls(self) -> int:
        return self._total_calls


def _describe_overlays(text_overlays: dict[str, str]) -> str:
    filled = [f'{area}="{text}"' for area, text in text_overlays.items() if text]
    return ", ".join(filled) if filled else "no text"
