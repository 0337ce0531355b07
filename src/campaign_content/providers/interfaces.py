"""Capability interfaces consumed by the generation pipeline.

The strategies only depend on these protocols. ``TextProvider`` and
``ImageProvider`` are the concrete implementations shipped with the package;
tests substitute AsyncMock fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from ..constants import Platform

if TYPE_CHECKING:
    from ..content.models import GenerationResult, MediaAsset, TemplateDefinition


class ImageResult(BaseModel):
    """A generated image as returned by an image backend."""

    model_config = ConfigDict(frozen=True)

    url: str
    width: int
    height: int
    size_bytes: int = 0


@runtime_checkable
class TextGenerationService(Protocol):
    """Produces text from a prompt."""

    async def generate_text(
        self,
        brief: str,
        brand_voice: str,
        platform: Platform,
        character_limit: int,
    ) -> str: ...

    async def generate_structured_text(self, brief: str, schema_hint: str) -> str:
        """Return the raw model output; callers parse it defensively."""
        ...


@runtime_checkable
class ImageGenerationService(Protocol):
    """Produces images from a prompt and an optional base asset."""

    async def generate_image(
        self,
        prompt: str,
        base_asset: MediaAsset | None,
        dimensions: tuple[int, int],
        quality: int,
    ) -> ImageResult: ...

    async def generate_template_image(
        self,
        template: TemplateDefinition,
        base_asset: MediaAsset | None,
        background_url: str | None,
        text_overlays: dict[str, str],
        quality: int,
    ) -> ImageResult: ...

    async def generate_carousel_slide(
        self,
        template: TemplateDefinition | None,
        base_asset: MediaAsset,
        text_overlays: dict[str, str],
        carousel_context: dict[str, Any],
        quality: int,
    ) -> ImageResult: ...


class PublicationStore(Protocol):
    """Receives finished results; the pipeline never reads them back."""

    async def save(self, campaign_id: str, result: GenerationResult) -> Any: ...
