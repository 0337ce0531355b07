"""Campaign generation orchestrator.

Walks a campaign's content plan in order and produces one publication per
item. Coordinates components without owning their logic:
- StrategyFactory: picks the strategy for each item's content type
- RetryManager: step-level retries inside every strategy
- RecoverySelector: one coarser escalation when a strategy gives up
- ProgressTracker: live, pollable progress record for the run
- PublicationStore: receives every finished publication

State machine per campaign run:
    (planning upstream) -> GENERATING -> COMPLETED
                                      -> COMPLETED_WITH_ERRORS
                                      -> FAILED
                                      -> CANCELLED

At most one run per campaign is active at a time; different campaigns may
run concurrently on the same orchestrator.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from ..constants import (
    EXTENDED_TIMEOUT_DEFAULT_SECONDS,
    EXTENDED_TIMEOUT_FACTOR,
    OPTIMIZED_BRIEF_MAX_LENGTH,
    PLATFORM_LIMITS,
    ContentType,
    ErrorKind,
    RecoveryAction,
    RunStatus,
)
from ..providers.interfaces import ImageGenerationService, PublicationStore, TextGenerationService
from ..services.cancellation import CancellationToken
from ..services.errors import GenerationCancelled, GenerationInProgressError, normalize_error
from ..services.progress import ProgressTracker
from ..services.recovery import RecoverySelector, simplified_content_type
from ..services.retry import RetryManager, compute_delay
from .analysis import select_best_asset
from .models import (
    BrandGuideline,
    ContentPlanItem,
    GenerationContext,
    GenerationErrorRecord,
    GenerationProgress,
    GenerationResult,
    MediaAsset,
    TemplateDefinition,
)
from .strategies import ContentGenerator, StrategyConfig, StrategyFactory
from .text_areas import TextAreaInferer

_logger = logging.getLogger("generation")


class GenerationOrchestrator:
    """Runs content plans, one campaign run at a time per campaign.

    Usage:
        orchestrator = GenerationOrchestrator(
            text_service=text_provider,
            image_service=image_provider,
            publication_store=JsonPublicationStore(Path("output")),
        )
        progress = await orchestrator.run_campaign("summer-sale", items, brand, assets, templates)

        # From another task
        orchestrator.cancel_generation("summer-sale")
    """

    def __init__(
        self,
        text_service: TextGenerationService,
        publication_store: PublicationStore,
        image_service: ImageGenerationService | None = None,
        fallback_text_service: TextGenerationService | None = None,
        fallback_image_service: ImageGenerationService | None = None,
        tracker: ProgressTracker | None = None,
        recovery_selector: RecoverySelector | None = None,
        retry_manager: RetryManager | None = None,
        strategy_config: StrategyConfig | None = None,
        text_area_inferer: TextAreaInferer | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            text_service: Primary text backend.
            publication_store: Persistence collaborator for finished items.
            image_service: Primary image backend; image types are rejected without it.
            fallback_text_service: Alternate text backend for fallback_agent recovery.
            fallback_image_service: Alternate image backend for fallback_agent recovery.
            tracker: Progress store, shared with status pollers.
            recovery_selector: Escalation policy.
            retry_manager: Retry executor shared by every strategy.
            strategy_config: Default strategy tuning.
            text_area_inferer: Template text-area policy.
        """
        self.text_service = text_service
        self.image_service = image_service
        self.fallback_text_service = fallback_text_service
        self.fallback_image_service = fallback_image_service
        self.publication_store = publication_store
        self.tracker = tracker or ProgressTracker()
        self.recovery_selector = recovery_selector or RecoverySelector()
        self.retry_manager = retry_manager or RetryManager()
        self.strategy_config = strategy_config or StrategyConfig(retry=self.retry_manager.default_config)
        self.text_area_inferer = text_area_inferer

        self._active_runs: dict[str, CancellationToken] = {}
        self._guard = asyncio.Lock()

    # =========================================================================
    # Run lifecycle
    # =========================================================================

    async def run_campaign(
        self,
        campaign_id: str,
        items: Iterable[ContentPlanItem],
        brand: BrandGuideline,
        assets: Iterable[MediaAsset] = (),
        templates: Iterable[TemplateDefinition] | None = None,
    ) -> GenerationProgress:
        """Generate every plan item of a campaign, sequentially and in order.

        Args:
            campaign_id: Campaign being generated.
            items: Content plan, processed in the given order.
            brand: Brand guideline steering every prompt.
            assets: Candidate media assets for the campaign.
            templates: Templates that items may reference by id.

        Returns:
            Terminal progress snapshot.

        Raises:
            StrategyConfigurationError: An item's type cannot be served (before any call).
            GenerationInProgressError: A run for this campaign is already active.
        """
        items = list(items)
        assets = tuple(assets)
        templates_by_id = {template.id: template for template in templates or ()}

        # Fail fast on unsupported types before anything is registered or called
        strategies = [self._strategy_for(item.content_type) for item in items]

        token = await self._register_run(campaign_id)
        try:
            await self.tracker.create_progress(campaign_id, total=len(items))
            _logger.info(
                f"CAMPAIGN:{campaign_id} | RUN_START | items:{len(items)} | assets:{len(assets)} | "
                f"templates:{len(templates_by_id)}"
            )
            try:
                for index, (item, strategy) in enumerate(zip(items, strategies), start=1):
                    token.raise_if_cancelled()
                    context = self._build_context(item, brand, assets, templates_by_id)
                    await self._process_item(campaign_id, index, len(items), context, strategy, token)
            except GenerationCancelled:
                _logger.warning(f"CAMPAIGN:{campaign_id} | RUN_CANCELLED | reason:{token.reason}")
                return await self.tracker.complete_progress(campaign_id, RunStatus.CANCELLED)
            except asyncio.CancelledError:
                _logger.warning(f"CAMPAIGN:{campaign_id} | RUN_CANCELLED | reason:task cancelled")
                await self.tracker.complete_progress(campaign_id, RunStatus.CANCELLED)
                raise
            except Exception as e:
                _logger.exception(f"CAMPAIGN:{campaign_id} | RUN_ABORTED | error:{e}")
                await self.tracker.complete_progress(campaign_id, RunStatus.FAILED)
                raise

            return await self.tracker.complete_progress(campaign_id, self._terminal_status(campaign_id))
        finally:
            await self._release_run(campaign_id)

    def cancel_generation(self, campaign_id: str, reason: str | None = None) -> bool:
        """Request cancellation; honored at the next suspension point.

        Returns:
            True if a run was active for the campaign.
        """
        token = self._active_runs.get(campaign_id)
        if token is None:
            return False
        token.cancel(reason or "Cancelled by request")
        _logger.info(f"CAMPAIGN:{campaign_id} | CANCEL_REQUESTED")
        return True

    def is_generating(self, campaign_id: str) -> bool:
        return campaign_id in self._active_runs

    def get_generation_progress(self, campaign_id: str) -> GenerationProgress | None:
        return self.tracker.get_progress(campaign_id)

    def get_stats(self) -> dict[str, Any]:
        return {
            "active_runs": len(self._active_runs),
            "active_campaigns": sorted(self._active_runs),
            "supported_content_types": [
                content_type.value
                for content_type in StrategyFactory.supported_content_types(self.image_service is not None)
            ],
            "has_fallback_text": self.fallback_text_service is not None,
            "has_fallback_image": self.fallback_image_service is not None,
        }

    async def _register_run(self, campaign_id: str) -> CancellationToken:
        async with self._guard:
            if campaign_id in self._active_runs:
                raise GenerationInProgressError(campaign_id)
            token = CancellationToken()
            self._active_runs[campaign_id] = token
            return token

    async def _release_run(self, campaign_id: str) -> None:
        async with self._guard:
            self._active_runs.pop(campaign_id, None)

    def _terminal_status(self, campaign_id: str) -> RunStatus:
        progress = self.tracker.get_progress(campaign_id)
        if not progress.errors:
            return RunStatus.COMPLETED
        if progress.completed_items > 0:
            return RunStatus.COMPLETED_WITH_ERRORS
        return RunStatus.FAILED

    # =========================================================================
    # Items
    # =========================================================================

    def _strategy_for(
        self,
        content_type: ContentType,
        text_service: TextGenerationService | None = None,
        image_service: ImageGenerationService | None = None,
    ) -> ContentGenerator:
        return StrategyFactory.create(
            content_type,
            text_service or self.text_service,
            image_service or self.image_service,
            retry_manager=self.retry_manager,
            config=self.strategy_config,
            text_area_inferer=self.text_area_inferer,
        )

    @staticmethod
    def _build_context(
        item: ContentPlanItem,
        brand: BrandGuideline,
        assets: tuple[MediaAsset, ...],
        templates: dict[str, TemplateDefinition],
    ) -> GenerationContext:
        candidates = assets
        if item.asset_ids:
            wanted = set(item.asset_ids)
            candidates = tuple(asset for asset in assets if asset.id in wanted)
        template = templates.get(item.template_id) if item.template_id else None
        return GenerationContext(item=item, brand=brand, assets=candidates, template=template)

    async def _process_item(
        self,
        campaign_id: str,
        index: int,
        total: int,
        context: GenerationContext,
        strategy: ContentGenerator,
        token: CancellationToken,
    ) -> None:
        item = context.item
        await self.tracker.update_current(
            campaign_id, item.id, f"Generating {item.content_type.value} ({index}/{total})"
        )
        _logger.info(
            f"CAMPAIGN:{campaign_id} | ITEM_START | item:{item.id} | type:{item.content_type.value} | "
            f"platform:{item.platform.value} | position:{index}/{total}"
        )

        result = await strategy.generate(context, token=token)
        if not result.success:
            result = await self._recover(campaign_id, context, result, token)

        if result.success:
            try:
                await self.publication_store.save(campaign_id, result)
            except Exception as e:
                error = normalize_error(e)
                await self._record_failure(
                    campaign_id,
                    result.model_copy(update={
                        "success": False,
                        "error": f"Persisting publication failed: {error.message}",
                        "error_kind": error.kind,
                    }),
                )
                return
            await self.tracker.increment_completed(campaign_id)
            _logger.info(
                f"CAMPAIGN:{campaign_id} | ITEM_DONE | item:{item.id} | type:{result.content_type.value} | "
                f"retries:{result.retry_count} | duration:{result.generation_time:.2f}s"
            )
        else:
            await self._record_failure(campaign_id, result)

    async def _record_failure(self, campaign_id: str, result: GenerationResult) -> None:
        await self.tracker.add_error(
            campaign_id,
            GenerationErrorRecord(
                item_id=result.item_id,
                error_kind=result.error_kind or ErrorKind.UNKNOWN_ERROR,
                message=result.error or "Unknown error",
                retry_count=result.retry_count,
                recovery_action=result.metadata.recovery_action if result.metadata else None,
            ),
        )

    # =========================================================================
    # Recovery
    # =========================================================================

    def _has_fallback_backend(self, content_type: ContentType) -> bool:
        if self.fallback_text_service is not None:
            return True
        return content_type.requires_image_service and self.fallback_image_service is not None

    async def _recover(
        self,
        campaign_id: str,
        context: GenerationContext,
        failed: GenerationResult,
        token: CancellationToken,
    ) -> GenerationResult:
        """Run exactly one escalation for a failed item."""
        item = context.item
        action = self.recovery_selector.select(
            failed.error_kind or ErrorKind.UNKNOWN_ERROR,
            item.content_type,
            has_fallback_backend=self._has_fallback_backend(item.content_type),
            error_code=failed.error_code,
        )
        await self.tracker.update_current(campaign_id, item.id, f"Recovering: {action.value}")
        _logger.info(
            f"CAMPAIGN:{campaign_id} | RECOVERY_START | item:{item.id} | action:{action.value} | "
            f"kind:{(failed.error_kind or ErrorKind.UNKNOWN_ERROR).value}"
        )

        strategy = self._strategy_for(item.content_type)
        config = self.strategy_config

        if action is RecoveryAction.EXPONENTIAL_BACKOFF:
            retry = config.retry
            await token.sleep(compute_delay(retry.max_attempts + 1, retry))

        elif action is RecoveryAction.RETRY_WITH_TIMEOUT:
            timeout = (
                config.retry.call_timeout * EXTENDED_TIMEOUT_FACTOR
                if config.retry.call_timeout
                else EXTENDED_TIMEOUT_DEFAULT_SECONDS
            )
            config = config.replace(retry=config.retry.replace(max_attempts=1, call_timeout=timeout))

        elif action is RecoveryAction.FALLBACK_AGENT:
            strategy = self._strategy_for(
                item.content_type,
                text_service=self.fallback_text_service,
                image_service=self.fallback_image_service,
            )

        elif action is RecoveryAction.SIMPLIFIED_GENERATION:
            strategy = self._strategy_for(self._simplified_type(context))

        elif action is RecoveryAction.CONTENT_OPTIMIZATION:
            context = self._optimized_context(context)

        recovered = await strategy.generate(context, config=config, token=token, recovery_action=action)
        retry_count = failed.retry_count + recovered.retry_count + 1
        _logger.info(
            f"CAMPAIGN:{campaign_id} | RECOVERY_END | item:{item.id} | action:{action.value} | "
            f"success:{recovered.success} | retries:{retry_count}"
        )
        return recovered.model_copy(update={"retry_count": retry_count})

    def _simplified_type(self, context: GenerationContext) -> ContentType:
        target = simplified_content_type(context.item.content_type)
        if target.requires_image_service and (
            self.image_service is None or select_best_asset(context.assets) is None
        ):
            return ContentType.TEXT_ONLY
        return target

    @staticmethod
    def _optimized_context(context: GenerationContext) -> GenerationContext:
        item = context.item
        description = item.description
        if len(description) > OPTIMIZED_BRIEF_MAX_LENGTH:
            description = description[:OPTIMIZED_BRIEF_MAX_LENGTH] + "..."
        limit = PLATFORM_LIMITS[item.platform].max_characters
        return GenerationContext(
            item=item.model_copy(update={"description": description}),
            brand=context.brand,
            assets=context.assets,
            template=context.template,
            extra_instructions=[
                *context.extra_instructions,
                f"IMPORTANT: the text must stay well under {limit} characters. Be concise.",
            ],
        )
