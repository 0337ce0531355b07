"""Text-only strategy: caption, validated, nothing else."""

from __future__ import annotations

from ...constants import ESTIMATED_SECONDS_TEXT_ONLY, ContentType
from ..models import GenerationContext, PublicationPayload
from .base import ContentGenerator, GenerationRun


class TextOnlyGenerator(ContentGenerator):
    """Generates a caption for a post without visuals."""

    content_type = ContentType.TEXT_ONLY
    estimated_seconds = ESTIMATED_SECONDS_TEXT_ONLY
    requires_image_service = False

    async def _produce(self, context: GenerationContext, run: GenerationRun) -> PublicationPayload:
        text = await self._generate_validated_text(context, run)
        return PublicationPayload(text=text)
