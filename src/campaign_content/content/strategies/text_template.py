"""Text + template strategy.

Steps:
    1. Caption text, validated against platform limits
    2. Background image from the best compatible asset
    3. Per-area texts for the template's text areas, one batched request,
       each hard-truncated to its cap
    4. Final composition: background + template + area texts
"""

from __future__ import annotations

import json

from ...constants import ESTIMATED_SECONDS_TEXT_TEMPLATE, PLATFORM_DIMENSIONS, ContentType
from ...services.errors import CODE_TEMPLATE_MISSING, content_error
from ..models import GenerationContext, PublicationPayload, TemplateDefinition, TemplateTextArea
from ..responses import parse_template_texts
from ..text_areas import fit_area_texts
from .base import GenerationRun, StepFailed
from .text_image import TextImageGenerator


def require_template(context: GenerationContext) -> TemplateDefinition:
    if context.template is None:
        raise StepFailed(
            "select_template",
            content_error(CODE_TEMPLATE_MISSING, f"Item {context.item.id} has no usable template"),
        )
    return context.template


def build_area_brief(
    context: GenerationContext,
    areas: list[TemplateTextArea],
    caption: str,
    focus: str | None = None,
) -> tuple[str, str]:
    """Brief and schema hint for a batched area-text request."""
    spec = {area.id: f"{area.label}, max {area.max_characters} characters" for area in areas}
    lines = [
        f"Write the texts for the template '{context.template.name if context.template else ''}'.",
        f"Description: {focus or context.item.description}",
        context.brand.describe(),
        f"Post caption: {caption}",
        "Respect every character limit.",
    ]
    schema_hint = json.dumps({"texts": spec}, ensure_ascii=False)
    return "\n".join(lines), schema_hint


class TextTemplateGenerator(TextImageGenerator):
    """Generates a caption plus an image rendered through a template."""

    content_type = ContentType.TEXT_TEMPLATE
    estimated_seconds = ESTIMATED_SECONDS_TEXT_TEMPLATE

    async def _produce(self, context: GenerationContext, run: GenerationRun) -> PublicationPayload:
        template = require_template(context)
        text = await self._generate_validated_text(context, run)
        asset = self._require_asset(context, run)

        background_prompt = self.build_image_prompt(context, text)
        run.prompts.append(background_prompt)
        background = await self._call(
            run,
            "background",
            lambda: self.image_service.generate_image(
                background_prompt,
                asset,
                PLATFORM_DIMENSIONS[context.platform],
                run.config.background_quality,
            ),
        )

        areas = self.text_area_inferer.infer(template)
        area_texts = await self._area_texts(context, run, areas, text)

        final = await self._call(
            run,
            "compose",
            lambda: self.image_service.generate_template_image(
                template, asset, background.url, area_texts, run.config.template_quality
            ),
        )
        return PublicationPayload(
            text=text,
            image_urls=[final.url],
            template_texts=area_texts,
            background_url=background.url,
        )

    async def _area_texts(
        self,
        context: GenerationContext,
        run: GenerationRun,
        areas: list[TemplateTextArea],
        caption: str,
    ) -> dict[str, str]:
        brief, schema_hint = build_area_brief(context, areas, caption)
        run.prompts.append(brief)
        raw = await self._call(
            run,
            "template_texts",
            lambda: self.text_service.generate_structured_text(brief, schema_hint),
        )
        texts = parse_template_texts(raw)
        if not texts:
            # Unusable answer: headline from the caption's first line
            texts = {"headline": caption.splitlines()[0]}
        return fit_area_texts(texts, areas)
