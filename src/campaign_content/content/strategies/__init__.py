"""Content generation strategies.

One ContentGenerator subclass per content type:
- TextOnlyGenerator: caption only
- TextImageGenerator: caption + composed image
- TextTemplateGenerator: caption + template rendering with text areas
- CarouselGenerator: caption + ordered slides

Usage:
    from campaign_content.content.strategies import StrategyFactory

    strategy = StrategyFactory.create(
        ContentType.CAROUSEL,
        text_service=text_provider,
        image_service=image_provider,
    )
    result = await strategy.generate(context)

    # Register a custom strategy
    StrategyFactory.register(ContentType.TEXT_IMAGE, MyImageGenerator)
"""

from __future__ import annotations

from ...constants import ContentType
from ...providers.interfaces import ImageGenerationService, TextGenerationService
from ...services.errors import StrategyConfigurationError
from ...services.retry import RetryManager
from ..text_areas import TextAreaInferer
from .base import ContentGenerator, GenerationRun, StepFailed, StrategyConfig
from .carousel import CarouselGenerator
from .text_image import TextImageGenerator
from .text_only import TextOnlyGenerator
from .text_template import TextTemplateGenerator


class StrategyFactory:
    """Factory mapping content types to strategy classes.

    Selection is a pure function of the content type and of whether an
    image backend is configured.
    """

    # Registry of content types to strategy classes
    _strategy_classes: dict[ContentType, type[ContentGenerator]] = {}

    @classmethod
    def _ensure_registered(cls) -> None:
        """Ensure default strategy classes are registered."""
        if not cls._strategy_classes:
            cls._strategy_classes = {
                ContentType.TEXT_ONLY: TextOnlyGenerator,
                ContentType.TEXT_IMAGE: TextImageGenerator,
                ContentType.TEXT_TEMPLATE: TextTemplateGenerator,
                ContentType.CAROUSEL: CarouselGenerator,
            }

    @classmethod
    def register(cls, content_type: ContentType, strategy_class: type[ContentGenerator]) -> None:
        cls._ensure_registered()
        cls._strategy_classes[content_type] = strategy_class

    @classmethod
    def resolve(cls, content_type: ContentType | str, has_image_service: bool) -> type[ContentGenerator]:
        """Strategy class for a content type, without building it.

        Raises:
            StrategyConfigurationError: Unknown type, or image type without an image backend.
        """
        cls._ensure_registered()
        try:
            content_type = ContentType(content_type)
        except ValueError:
            raise StrategyConfigurationError(f"Unknown content type: {content_type}") from None

        strategy_class = cls._strategy_classes.get(content_type)
        if strategy_class is None:
            raise StrategyConfigurationError(f"No strategy registered for content type: {content_type.value}")
        if strategy_class.requires_image_service and not has_image_service:
            raise StrategyConfigurationError(
                f"Content type {content_type.value} requires an image service, none is configured"
            )
        return strategy_class

    @classmethod
    def create(
        cls,
        content_type: ContentType | str,
        text_service: TextGenerationService,
        image_service: ImageGenerationService | None = None,
        *,
        retry_manager: RetryManager | None = None,
        config: StrategyConfig | None = None,
        text_area_inferer: TextAreaInferer | None = None,
    ) -> ContentGenerator:
        """Build the strategy for ``content_type``.

        Raises:
            StrategyConfigurationError: If the type cannot be served.
        """
        strategy_class = cls.resolve(content_type, image_service is not None)
        return strategy_class(
            text_service,
            image_service,
            retry_manager=retry_manager,
            config=config,
            text_area_inferer=text_area_inferer,
        )

    @classmethod
    def supported_content_types(cls, has_image_service: bool) -> list[ContentType]:
        cls._ensure_registered()
        return [
            content_type
            for content_type, strategy_class in cls._strategy_classes.items()
            if has_image_service or not strategy_class.requires_image_service
        ]

    @classmethod
    def get_registered_types(cls) -> list[ContentType]:
        cls._ensure_registered()
        return list(cls._strategy_classes.keys())


__all__ = [
    # Base classes
    "ContentGenerator",
    "GenerationRun",
    "StepFailed",
    "StrategyConfig",
    # Strategies
    "TextOnlyGenerator",
    "TextImageGenerator",
    "TextTemplateGenerator",
    "CarouselGenerator",
    # Factory
    "StrategyFactory",
]
