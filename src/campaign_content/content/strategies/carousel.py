"""Carousel strategy.

Steps:
    1. Caption text, briefed as accompanying a multi-slide carousel
    2. N narrative topics in one structured request (mechanical fallback)
    3. N best assets, one per slide
    4. For each slide, in order: slide texts (with "k/N" labels), then the
       slide image, passing the URLs of earlier slides as coherence context

    N = min(platform max slides, compatible assets, configured max slides)
"""

from __future__ import annotations

import json
import logging

from ...constants import (
    ESTIMATED_SECONDS_CAROUSEL,
    PLATFORM_MAX_CAROUSEL_SLIDES,
    ContentType,
    Platform,
)
from ...services.errors import CODE_ASSET_UNAVAILABLE, content_error
from ..analysis import rank_assets
from ..models import (
    CarouselSlide,
    GenerationContext,
    MediaAsset,
    PublicationPayload,
    TemplateDefinition,
)
from ..responses import SlideTopics, fallback_topics, parse_slide_topics, parse_template_texts
from ..text_areas import fit_area_texts
from .base import ContentGenerator, GenerationRun, StepFailed, StrategyConfig
from .text_template import build_area_brief, require_template

_logger = logging.getLogger("generation")


def slide_count(platform: Platform, compatible_assets: int, config: StrategyConfig) -> int:
    return min(PLATFORM_MAX_CAROUSEL_SLIDES[platform], compatible_assets, config.max_carousel_slides)


def progress_labels(index: int, total: int) -> dict[str, str]:
    """Labels injected on slide ``index`` (1-based) of ``total``."""
    return {
        "slide_number": f"{index}/{total}",
        "progress_indicator": f"Step {index} of {total}",
    }


class CarouselGenerator(ContentGenerator):
    """Generates a caption plus an ordered set of coherent slides."""

    content_type = ContentType.CAROUSEL
    estimated_seconds = ESTIMATED_SECONDS_CAROUSEL

    async def _produce(self, context: GenerationContext, run: GenerationRun) -> PublicationPayload:
        template = require_template(context)
        ranked = rank_assets(context.assets)
        total = slide_count(context.platform, len(ranked), run.config)
        if total < run.config.min_carousel_slides:
            raise StepFailed(
                "select_assets",
                content_error(
                    CODE_ASSET_UNAVAILABLE,
                    f"Carousel needs at least {run.config.min_carousel_slides} compatible assets, "
                    f"found {len(ranked)}",
                ),
            )

        text = await self._generate_validated_text(
            context,
            run,
            notes=[f"This caption accompanies a {total}-slide carousel; introduce the series, not a single image."],
        )

        topics = await self._plan_topics(context, run, total, text)
        run.topics_source = topics.source
        slide_assets = ranked[:total]
        run.asset_ids.extend(asset.id for asset in slide_assets)

        slides: list[CarouselSlide] = []
        for index, (topic, asset) in enumerate(zip(topics.topics, slide_assets), start=1):
            slides.append(
                await self._generate_slide(context, run, template, asset, topic, index, total, slides)
            )

        return PublicationPayload(
            text=text,
            image_urls=[slide.image.url for slide in slides if slide.image],
            slides=slides,
        )

    async def _plan_topics(
        self,
        context: GenerationContext,
        run: GenerationRun,
        total: int,
        caption: str,
    ) -> SlideTopics:
        description = context.item.description
        brief = "\n".join([
            f"Plan a {total}-slide {context.platform.value} carousel.",
            f"Description: {description}",
            f"Caption: {caption}",
            f"Return exactly {total} distinct topics that tell one story in order.",
        ])
        schema_hint = json.dumps({"slides": [f"topic {k}" for k in range(1, total + 1)]})
        run.prompts.append(brief)

        try:
            raw = await self._call(
                run,
                "topics",
                lambda: self.text_service.generate_structured_text(brief, schema_hint),
            )
        except StepFailed as e:
            _logger.warning(
                f"ITEM:{context.item.id} | TOPICS_FALLBACK | reason:request_failed | error:{e.error.message[:100]}"
            )
            return fallback_topics(total, description, "request_failed")

        topics = parse_slide_topics(raw, total, description)
        if topics.source == "fallback":
            _logger.warning(f"ITEM:{context.item.id} | TOPICS_FALLBACK | reason:{topics.reason}")
        return topics

    async def _generate_slide(
        self,
        context: GenerationContext,
        run: GenerationRun,
        template: TemplateDefinition,
        asset: MediaAsset,
        topic: str,
        index: int,
        total: int,
        previous: list[CarouselSlide],
    ) -> CarouselSlide:
        areas = self.text_area_inferer.infer(template.model_copy(update={"template_type": "carousel"}))
        brief, schema_hint = build_area_brief(
            context,
            areas,
            caption=topic,
            focus=f"Slide {index} of {total}: {topic}\n\nOverall context: {context.item.description}",
        )
        run.prompts.append(brief)
        raw = await self._call(
            run,
            f"slide_{index}_texts",
            lambda: self.text_service.generate_structured_text(brief, schema_hint),
        )
        texts = fit_area_texts(parse_template_texts(raw) or {"slide_title": topic}, areas)
        texts.update(progress_labels(index, total))

        carousel_context = {
            "slide_index": index,
            "total_slides": total,
            "topic": topic,
            "previous_image_urls": [slide.image.url for slide in previous if slide.image],
        }
        image = await self._call(
            run,
            f"slide_{index}_image",
            lambda: self.image_service.generate_carousel_slide(
                template, asset, texts, carousel_context, run.config.slide_quality
            ),
        )
        _logger.info(f"ITEM:{context.item.id} | SLIDE_DONE | slide:{index}/{total} | asset:{asset.id}")
        return CarouselSlide(index=index, topic=topic, texts=texts, asset_id=asset.id, image=image)
