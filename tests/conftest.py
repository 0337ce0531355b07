"""Shared test fixtures and configuration.

Provides service fakes and domain objects for testing the campaign-content
components. Service fixtures are AsyncMocks that can be awaited like the
real providers, and every retry policy uses zero delays.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from campaign_content.constants import ContentType, Platform
from campaign_content.content.models import (
    BrandGuideline,
    ContentPlanItem,
    GenerationContext,
    MediaAsset,
    TemplateDefinition,
)
from campaign_content.content.strategies import StrategyConfig
from campaign_content.providers.interfaces import ImageResult
from campaign_content.services.retry import RetryConfig, RetryManager

CAPTION = "Fresh organic baskets for the whole family this summer! #organic #summer"


@pytest.fixture
def fast_retry() -> RetryConfig:
    """Three attempts, no waiting."""
    return RetryConfig(max_attempts=3, base_delay=0.0, max_delay=0.0)


@pytest.fixture
def retry_manager(fast_retry: RetryConfig) -> RetryManager:
    return RetryManager(default_config=fast_retry)


@pytest.fixture
def strategy_config(fast_retry: RetryConfig) -> StrategyConfig:
    return StrategyConfig(retry=fast_retry)


@pytest.fixture
def brand() -> BrandGuideline:
    return BrandGuideline(
        name="Casa Verde",
        voice="warm and playful",
        target_audience="young families",
        values=["sustainability"],
        keywords=["organic"],
    )


@pytest.fixture
def image_asset() -> MediaAsset:
    return MediaAsset(id="hero", url="https://cdn.test/hero.jpg", mime_type="image/jpeg", width=2048, height=2048)


@pytest.fixture
def assets(image_asset: MediaAsset) -> tuple[MediaAsset, ...]:
    """Three compatible assets and one unsupported file."""
    return (
        MediaAsset(id="clip", url="https://cdn.test/clip.mp4", mime_type="video/mp4", width=3840, height=2160),
        image_asset,
        MediaAsset(id="market", url="https://cdn.test/market.png", mime_type="image/png", width=1600, height=1200),
        MediaAsset(id="brochure", url="https://cdn.test/brochure.pdf", mime_type="application/pdf"),
    )


@pytest.fixture
def single_template() -> TemplateDefinition:
    return TemplateDefinition(id="promo", name="Summer Promo", url="https://cdn.test/promo.png")


@pytest.fixture
def carousel_template() -> TemplateDefinition:
    return TemplateDefinition(
        id="tips",
        name="Weekly Tips",
        template_type="carousel",
        url="https://cdn.test/tips.png",
    )


@pytest.fixture
def make_item():
    """Factory for plan items.

    Usage:
        def test_something(make_item):
            item = make_item(ContentType.CAROUSEL, platform=Platform.LINKEDIN)
    """
    def _make(
        content_type: ContentType = ContentType.TEXT_ONLY,
        item_id: str = "item-1",
        platform: Platform = Platform.INSTAGRAM,
        description: str = "Summer baskets launch",
        **kwargs,
    ) -> ContentPlanItem:
        return ContentPlanItem(
            id=item_id,
            campaign_id="summer-sale",
            platform=platform,
            content_type=content_type,
            description=description,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_context(brand: BrandGuideline, assets: tuple[MediaAsset, ...], make_item):
    def _make(content_type: ContentType = ContentType.TEXT_ONLY, template=None, **kwargs) -> GenerationContext:
        item_assets = kwargs.pop("assets", assets)
        return GenerationContext(
            item=make_item(content_type, **kwargs),
            brand=brand,
            assets=tuple(item_assets),
            template=template,
        )

    return _make


@pytest.fixture
def mock_text_service() -> AsyncMock:
    """Create a mock TextGenerationService.

    Returns:
        AsyncMock answering captions and an area-text JSON object.
    """
    service = AsyncMock()
    service.generate_text.return_value = CAPTION
    service.generate_structured_text.return_value = '{"texts": {"headline": "Summer Sale", "cta": "Shop now"}}'
    return service


@pytest.fixture
def mock_image_service() -> AsyncMock:
    """Create a mock ImageGenerationService.

    Every call returns a distinct URL so tests can follow images around.
    """
    service = AsyncMock()
    counter = {"n": 0}

    def _next(*args, **kwargs) -> ImageResult:
        counter["n"] += 1
        return ImageResult(url=f"https://img.test/{counter['n']}.jpg", width=1080, height=1080, size_bytes=1024)

    service.generate_image.side_effect = _next
    service.generate_template_image.side_effect = _next
    service.generate_carousel_slide.side_effect = _next
    return service


@pytest.fixture
def mock_store() -> AsyncMock:
    store = AsyncMock()
    store.save.return_value = Path("output/summer-sale/001-item-1.json")
    return store
