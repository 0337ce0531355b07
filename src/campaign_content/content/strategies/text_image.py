"""Text + image strategy.

Steps:
    1. Caption text, validated against platform limits
    2. Best compatible brand asset (images before videos, then resolution)
    3. Image prompt from caption keywords and tone
    4. One composed image anchored on the asset
"""

from __future__ import annotations

from ...constants import ESTIMATED_SECONDS_TEXT_IMAGE, PLATFORM_DIMENSIONS, ContentType
from ...services.errors import CODE_ASSET_UNAVAILABLE, content_error
from ..analysis import classify_tone, extract_keywords, select_best_asset
from ..models import GenerationContext, MediaAsset, PublicationPayload
from .base import ContentGenerator, GenerationRun, StepFailed


class TextImageGenerator(ContentGenerator):
    """Generates a caption plus one image built on a brand asset."""

    content_type = ContentType.TEXT_IMAGE
    estimated_seconds = ESTIMATED_SECONDS_TEXT_IMAGE

    async def _produce(self, context: GenerationContext, run: GenerationRun) -> PublicationPayload:
        text = await self._generate_validated_text(context, run)
        asset = self._require_asset(context, run)

        prompt = self.build_image_prompt(context, text)
        run.prompts.append(prompt)
        dimensions = PLATFORM_DIMENSIONS[context.platform]

        image = await self._call(
            run,
            "image",
            lambda: self.image_service.generate_image(
                prompt, asset, dimensions, run.config.image_quality
            ),
        )
        return PublicationPayload(text=text, image_urls=[image.url])

    @staticmethod
    def _require_asset(context: GenerationContext, run: GenerationRun) -> MediaAsset:
        asset = select_best_asset(context.assets)
        if asset is None:
            raise StepFailed(
                "select_asset",
                content_error(
                    CODE_ASSET_UNAVAILABLE,
                    f"No compatible asset among {len(context.assets)} candidates",
                ),
            )
        run.asset_ids.append(asset.id)
        return asset

    @staticmethod
    def build_image_prompt(context: GenerationContext, text: str) -> str:
        brand = context.brand
        keywords = extract_keywords(text)
        lines = [
            f"Create a professional image for {context.platform.value} that complements this text:",
            f'TEXT CONTENT: "{text}"',
            brand.describe(),
            f"CONTENT DESCRIPTION: {context.item.description}",
            f"Tone: {classify_tone(text)}",
        ]
        if keywords:
            lines.append(f"Keywords to incorporate: {', '.join(keywords)}")
        if brand.target_audience:
            lines.append(f"Appropriate for: {brand.target_audience}")
        return "\n".join(lines)
