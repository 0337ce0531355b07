"""Base classes for content generation strategies.

Each content type (text only, text + image, text + template, carousel) has
its own strategy class inheriting from ContentGenerator. A strategy is a
multi-step pipeline where every external call is wrapped individually by
the RetryManager, so a failing image request never re-runs the text step.

Strategy instances hold no per-call state: everything a single invocation
accumulates lives in a GenerationRun created inside ``generate()``, and
configuration is an immutable StrategyConfig. Two campaigns can share one
instance concurrently.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, ClassVar, TypeVar

from ...constants import (
    CAROUSEL_DEFAULT_MAX_SLIDES,
    CAROUSEL_MIN_SLIDES,
    IMAGE_QUALITY_BACKGROUND,
    IMAGE_QUALITY_SIMPLE,
    IMAGE_QUALITY_TEMPLATE,
    RETRY_MIN_DELAY_SECONDS,
    ContentType,
    Platform,
    PlatformLimits,
    RecoveryAction,
)
from ...providers.interfaces import ImageGenerationService, TextGenerationService
from ...services.cancellation import CancellationToken
from ...services.errors import (
    CODE_CONTENT_TOO_LONG,
    CODE_EMPTY_CONTENT,
    AIServiceError,
    content_error,
)
from ...services.retry import RetryConfig, RetryManager
from ..analysis import get_platform_limits, validate_content, validation_problems
from ..models import (
    GenerationContext,
    GenerationMetadata,
    GenerationResult,
    PublicationPayload,
)
from ..text_areas import NameHeuristicTextAreaInferer, TextAreaInferer

_logger = logging.getLogger("generation")

T = TypeVar("T")


@dataclass(frozen=True)
class StrategyConfig:
    """Immutable tuning shared by every strategy invocation."""
    retry: RetryConfig = field(default_factory=RetryConfig)
    max_carousel_slides: int = CAROUSEL_DEFAULT_MAX_SLIDES
    min_carousel_slides: int = CAROUSEL_MIN_SLIDES
    image_quality: int = IMAGE_QUALITY_SIMPLE
    background_quality: int = IMAGE_QUALITY_BACKGROUND
    template_quality: int = IMAGE_QUALITY_TEMPLATE
    slide_quality: int = IMAGE_QUALITY_BACKGROUND

    def replace(self, **changes: Any) -> StrategyConfig:
        return dataclasses.replace(self, **changes)


class StepFailed(Exception):
    """A pipeline step failed after its own retries; ends the invocation."""

    def __init__(self, step: str, error: AIServiceError):
        super().__init__(f"{step}: {error.message}")
        self.step = step
        self.error = error


@dataclass
class GenerationRun:
    """Bookkeeping for one ``generate()`` call. Never stored on a strategy."""
    context: GenerationContext
    config: StrategyConfig
    token: CancellationToken | None = None
    recovery_action: RecoveryAction | None = None
    started: float = field(default_factory=time.monotonic)
    retries: int = 0
    prompts: list[str] = field(default_factory=list)
    asset_ids: list[str] = field(default_factory=list)
    topics_source: str | None = None

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started


class ContentGenerator(ABC):
    """Base class for content generation strategies.

    Usage:
        strategy = StrategyFactory.create(ContentType.TEXT_IMAGE, text_service, image_service)
        result = await strategy.generate(context, token=token)
    """

    content_type: ClassVar[ContentType]
    estimated_seconds: ClassVar[float]
    requires_image_service: ClassVar[bool] = True

    def __init__(
        self,
        text_service: TextGenerationService,
        image_service: ImageGenerationService | None = None,
        *,
        retry_manager: RetryManager | None = None,
        config: StrategyConfig | None = None,
        text_area_inferer: TextAreaInferer | None = None,
    ):
        """Initialize the strategy.

        Args:
            text_service: Backend producing captions and structured texts.
            image_service: Backend producing images; required by image types.
            retry_manager: Shared retry executor.
            config: Default tuning, overridable per ``generate()`` call.
            text_area_inferer: Policy for template text areas.
        """
        if self.requires_image_service and image_service is None:
            raise ValueError(f"{type(self).__name__} requires an image service")
        self.text_service = text_service
        self.image_service = image_service
        self.retry_manager = retry_manager or RetryManager()
        self.config = config or StrategyConfig()
        self.text_area_inferer = text_area_inferer or NameHeuristicTextAreaInferer()

    # =========================================================================
    # Public contract
    # =========================================================================

    async def generate(
        self,
        context: GenerationContext,
        *,
        config: StrategyConfig | None = None,
        token: CancellationToken | None = None,
        recovery_action: RecoveryAction | None = None,
    ) -> GenerationResult:
        """Produce a publication for ``context.item``.

        Runtime failures come back as a failed GenerationResult. Only a
        missing context (programmer error) or cancellation raises.

        Raises:
            ValueError: If the context has no plan item.
            GenerationCancelled: If ``token`` is cancelled at a suspension point.
        """
        if context is None or context.item is None:
            raise ValueError("GenerationContext with a plan item is required")

        run = GenerationRun(
            context=context,
            config=config or self.config,
            token=token,
            recovery_action=recovery_action,
        )
        item = context.item
        _logger.info(
            f"ITEM:{item.id} | STRATEGY_START | strategy:{self.content_type.value} | "
            f"platform:{item.platform.value} | assets:{len(context.assets)}"
        )

        try:
            payload = await self._produce(context, run)
        except StepFailed as e:
            _logger.warning(
                f"ITEM:{item.id} | STRATEGY_FAILED | strategy:{self.content_type.value} | "
                f"step:{e.step} | kind:{e.error.kind.value} | retries:{run.retries} | "
                f"duration:{run.elapsed:.2f}s | error:{e.error.message[:200]}"
            )
            return GenerationResult(
                success=False,
                item_id=item.id,
                content_type=self.content_type,
                retry_count=run.retries,
                generation_time=run.elapsed,
                error=e.error.message,
                error_kind=e.error.kind,
                error_code=e.error.code,
                metadata=self._metadata(run),
            )

        _logger.info(
            f"ITEM:{item.id} | STRATEGY_END | strategy:{self.content_type.value} | "
            f"retries:{run.retries} | duration:{run.elapsed:.2f}s | images:{len(payload.image_urls)}"
        )
        return GenerationResult(
            success=True,
            item_id=item.id,
            content_type=self.content_type,
            payload=payload,
            retry_count=run.retries,
            generation_time=run.elapsed,
            metadata=self._metadata(run),
        )

    def validate_content(self, text: str, platform: Platform) -> bool:
        return validate_content(text, platform)

    def get_platform_limits(self, platform: Platform) -> PlatformLimits:
        return get_platform_limits(platform)

    def estimate_generation_time(self) -> float:
        """Rough duration in seconds, for display only."""
        return self.estimated_seconds

    def with_retry_config(self, attempts: int, delay: float) -> ContentGenerator:
        """Copy of this strategy with a tuned retry policy.

        Args:
            attempts: Attempts per external call, clamped to at least 1.
            delay: Base backoff delay in seconds, clamped to at least 0.1.
        """
        retry = self.config.retry.replace(
            max_attempts=max(1, attempts),
            base_delay=max(RETRY_MIN_DELAY_SECONDS, delay),
        )
        return self.with_config(self.config.replace(retry=retry))

    def with_config(self, config: StrategyConfig) -> ContentGenerator:
        return type(self)(
            self.text_service,
            self.image_service,
            retry_manager=self.retry_manager,
            config=config,
            text_area_inferer=self.text_area_inferer,
        )

    # =========================================================================
    # Pipeline helpers
    # =========================================================================

    @abstractmethod
    async def _produce(self, context: GenerationContext, run: GenerationRun) -> PublicationPayload:
        """Run the strategy's steps; raise StepFailed to stop."""
        pass

    async def _call(
        self,
        run: GenerationRun,
        step: str,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        """Run one external call under the retry policy."""
        result = await self.retry_manager.execute_with_retry(
            operation,
            config=run.config.retry,
            operation_name=f"{run.context.item.id}:{step}",
            token=run.token,
        )
        run.retries += max(result.attempts - 1, 0)
        if not result.success:
            raise StepFailed(step, result.error)
        return result.result

    def _build_text_brief(self, context: GenerationContext, notes: list[str] | None = None) -> str:
        item = context.item
        limits = get_platform_limits(item.platform)
        lines = [
            f"Write a {item.platform.value} post.",
            f"Description: {item.description}",
            context.brand.describe(),
            f"Character limit: {limits.max_characters}",
        ]
        if item.scheduled_at:
            lines.append(f"Scheduled for: {item.scheduled_at:%Y-%m-%d}")
        lines.extend(notes or [])
        lines.extend(context.extra_instructions)
        return "\n".join(lines)

    async def _generate_validated_text(
        self,
        context: GenerationContext,
        run: GenerationRun,
        notes: list[str] | None = None,
    ) -> str:
        """Step one of every strategy: caption text checked against platform limits."""
        platform = context.platform
        limits = get_platform_limits(platform)
        brief = self._build_text_brief(context, notes)
        run.prompts.append(brief)

        text = await self._call(
            run,
            "text",
            lambda: self.text_service.generate_text(
                brief, context.brand.voice, platform, limits.max_characters
            ),
        )
        text = (text or "").strip()

        problems = validation_problems(text, platform)
        if problems:
            code = CODE_EMPTY_CONTENT if not text else CODE_CONTENT_TOO_LONG
            raise StepFailed(
                "validate_text",
                content_error(code, f"Generated text rejected for {platform.value}: {'; '.join(problems)}"),
            )
        return text

    def _metadata(self, run: GenerationRun) -> GenerationMetadata:
        template = run.context.template
        return GenerationMetadata(
            strategy=self.content_type,
            prompts=list(run.prompts),
            template_id=template.id if template else None,
            asset_ids=list(run.asset_ids),
            retry_count=run.retries,
            processing_time=run.elapsed,
            recovery_action=run.recovery_action,
            topics_source=run.topics_source,
        )
