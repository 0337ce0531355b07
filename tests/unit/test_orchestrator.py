"""Unit tests for GenerationOrchestrator.

Tests cover:
- Terminal outcomes (completed, completed with errors, failed, cancelled)
- One recovery escalation per failed item, for every action
- Fail-fast strategy resolution and the one-run-per-campaign guard
- Persistence failures and unexpected exceptions
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from campaign_content.constants import ContentType, ErrorKind, Platform, RecoveryAction, RunStatus
from campaign_content.content.orchestrator import GenerationOrchestrator
from campaign_content.services.errors import (
    AIServiceError,
    GenerationInProgressError,
    StrategyConfigurationError,
)


@pytest.fixture
def orchestrator(mock_text_service, mock_image_service, mock_store, retry_manager, strategy_config):
    return GenerationOrchestrator(
        text_service=mock_text_service,
        publication_store=mock_store,
        image_service=mock_image_service,
        retry_manager=retry_manager,
        strategy_config=strategy_config,
    )


class TestRunOutcomes:
    """Tests for terminal run statuses."""

    @pytest.mark.asyncio
    async def test_all_items_completed(self, orchestrator, make_item, brand, assets, single_template, mock_store):
        items = [
            make_item(ContentType.TEXT_ONLY, "a", platform=Platform.TWITTER),
            make_item(ContentType.TEXT_IMAGE, "b"),
            make_item(ContentType.TEXT_TEMPLATE, "c", template_id="promo"),
        ]

        progress = await orchestrator.run_campaign("summer", items, brand, assets, [single_template])

        assert progress.status is RunStatus.COMPLETED
        assert progress.completed_items == 3
        assert progress.errors == ()
        assert progress.percentage == 100.0
        saved = [call.args[1].item_id for call in mock_store.save.await_args_list]
        assert saved == ["a", "b", "c"]
        assert orchestrator.is_generating("summer") is False

    @pytest.mark.asyncio
    async def test_completed_with_errors(self, orchestrator, make_item, brand, mock_text_service):
        mock_text_service.generate_text.side_effect = [
            "First post",
            AIServiceError("bad key", ErrorKind.AUTHENTICATION_ERROR),
            AIServiceError("bad key", ErrorKind.AUTHENTICATION_ERROR),
        ]

        progress = await orchestrator.run_campaign(
            "summer",
            [make_item(ContentType.TEXT_ONLY, "a"), make_item(ContentType.TEXT_ONLY, "b")],
            brand,
        )

        assert progress.status is RunStatus.COMPLETED_WITH_ERRORS
        assert progress.completed_items == 1
        assert progress.failed_item_ids == ["b"]
        error = progress.errors[0]
        assert error.error_kind is ErrorKind.AUTHENTICATION_ERROR
        assert error.recovery_action is RecoveryAction.STANDARD_RETRY
        assert error.retry_count == 1

    @pytest.mark.asyncio
    async def test_all_failed(self, orchestrator, make_item, brand, mock_text_service, mock_store):
        mock_text_service.generate_text.side_effect = AIServiceError("bad key", ErrorKind.AUTHENTICATION_ERROR)

        progress = await orchestrator.run_campaign("summer", [make_item(ContentType.TEXT_ONLY)], brand)

        assert progress.status is RunStatus.FAILED
        assert progress.completed_items == 0
        mock_store.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_plan_completes(self, orchestrator, brand):
        progress = await orchestrator.run_campaign("summer", [], brand)

        assert progress.status is RunStatus.COMPLETED
        assert progress.total_items == 0


class TestRecovery:
    """Tests for the single escalation after a strategy gives up."""

    @pytest.mark.asyncio
    async def test_simplified_generation(self, orchestrator, make_item, brand, assets, mock_image_service):
        mock_image_service.generate_image.side_effect = AIServiceError("no credits", ErrorKind.QUOTA_EXCEEDED)

        progress = await orchestrator.run_campaign("summer", [make_item(ContentType.TEXT_IMAGE)], brand, assets)

        assert progress.status is RunStatus.COMPLETED
        result = orchestrator.publication_store.save.await_args.args[1]
        assert result.content_type is ContentType.TEXT_ONLY
        assert result.metadata.recovery_action is RecoveryAction.SIMPLIFIED_GENERATION
        assert result.retry_count == 1

    @pytest.mark.asyncio
    async def test_missing_template_simplifies(self, orchestrator, make_item, brand, assets, mock_store):
        progress = await orchestrator.run_campaign(
            "summer",
            [make_item(ContentType.TEXT_TEMPLATE, template_id="unknown")],
            brand,
            assets,
        )

        assert progress.status is RunStatus.COMPLETED
        result = mock_store.save.await_args.args[1]
        assert result.content_type is ContentType.TEXT_IMAGE

    @pytest.mark.asyncio
    async def test_simplified_without_assets_is_text_only(self, orchestrator, make_item, brand, mock_store):
        await orchestrator.run_campaign(
            "summer",
            [make_item(ContentType.TEXT_TEMPLATE, template_id="unknown")],
            brand,
        )

        assert mock_store.save.await_args.args[1].content_type is ContentType.TEXT_ONLY

    @pytest.mark.asyncio
    async def test_fallback_agent(self, mock_text_service, mock_store, retry_manager, strategy_config, make_item, brand):
        mock_text_service.generate_text.side_effect = AIServiceError("down", ErrorKind.SERVICE_UNAVAILABLE)
        fallback = AsyncMock()
        fallback.generate_text.return_value = "From the backup model"
        orchestrator = GenerationOrchestrator(
            text_service=mock_text_service,
            publication_store=mock_store,
            fallback_text_service=fallback,
            retry_manager=retry_manager,
            strategy_config=strategy_config,
        )

        progress = await orchestrator.run_campaign("summer", [make_item(ContentType.TEXT_ONLY)], brand)

        assert progress.status is RunStatus.COMPLETED
        result = mock_store.save.await_args.args[1]
        assert result.payload.text == "From the backup model"
        assert result.metadata.recovery_action is RecoveryAction.FALLBACK_AGENT
        # 2 retries on the primary + the escalation
        assert result.retry_count == 3

    @pytest.mark.asyncio
    async def test_rate_limit_backoff(self, orchestrator, make_item, brand, mock_text_service, mock_store):
        rate_limited = AIServiceError("slow down", ErrorKind.RATE_LIMIT_ERROR)
        mock_text_service.generate_text.side_effect = [rate_limited] * 3 + ["Finally through"]

        progress = await orchestrator.run_campaign("summer", [make_item(ContentType.TEXT_ONLY)], brand)

        assert progress.status is RunStatus.COMPLETED
        result = mock_store.save.await_args.args[1]
        assert result.metadata.recovery_action is RecoveryAction.EXPONENTIAL_BACKOFF
        assert mock_text_service.generate_text.await_count == 4

    @pytest.mark.asyncio
    async def test_retry_with_timeout_single_attempt(self, orchestrator, make_item, brand, mock_text_service, mock_store):
        mock_text_service.generate_text.side_effect = [ConnectionError("reset")] * 4

        progress = await orchestrator.run_campaign("summer", [make_item(ContentType.TEXT_ONLY)], brand)

        assert progress.status is RunStatus.FAILED
        assert progress.errors[0].recovery_action is RecoveryAction.RETRY_WITH_TIMEOUT
        assert progress.errors[0].error_kind is ErrorKind.NETWORK_ERROR
        # 3 attempts + exactly one escalation attempt
        assert mock_text_service.generate_text.await_count == 4
        assert progress.errors[0].retry_count == 3

    @pytest.mark.asyncio
    async def test_content_optimization(self, orchestrator, make_item, brand, mock_text_service, mock_store):
        mock_text_service.generate_text.side_effect = ["x" * 300, "Short and sweet"]
        item = make_item(ContentType.TEXT_ONLY, platform=Platform.TWITTER, description="d" * 150)

        progress = await orchestrator.run_campaign("summer", [item], brand)

        assert progress.status is RunStatus.COMPLETED
        second_brief = mock_text_service.generate_text.await_args_list[1].args[0]
        assert "Description: " + "d" * 100 + "..." in second_brief
        assert "d" * 101 not in second_brief
        assert "280 characters" in second_brief
        result = mock_store.save.await_args.args[1]
        assert result.metadata.recovery_action is RecoveryAction.CONTENT_OPTIMIZATION

    @pytest.mark.asyncio
    async def test_exactly_one_escalation(self, orchestrator, make_item, brand, mock_text_service):
        mock_text_service.generate_text.return_value = "x" * 300

        progress = await orchestrator.run_campaign(
            "summer", [make_item(ContentType.TEXT_ONLY, platform=Platform.TWITTER)], brand
        )

        assert progress.status is RunStatus.FAILED
        assert mock_text_service.generate_text.await_count == 2


class TestRunLifecycle:
    """Tests for guards, cancellation and failure containment."""

    @pytest.mark.asyncio
    async def test_unsupported_type_fails_fast(self, mock_text_service, mock_store, make_item, brand):
        orchestrator = GenerationOrchestrator(text_service=mock_text_service, publication_store=mock_store)
        items = [make_item(ContentType.TEXT_ONLY, "a"), make_item(ContentType.CAROUSEL, "b")]

        with pytest.raises(StrategyConfigurationError):
            await orchestrator.run_campaign("summer", items, brand)

        mock_text_service.generate_text.assert_not_awaited()
        assert orchestrator.get_generation_progress("summer") is None
        assert orchestrator.is_generating("summer") is False

    @pytest.mark.asyncio
    async def test_second_run_rejected(self, orchestrator, make_item, brand, mock_text_service):
        release = asyncio.Event()

        async def _blocked(*args):
            await release.wait()
            return "Done waiting"

        mock_text_service.generate_text.side_effect = _blocked
        first = asyncio.create_task(
            orchestrator.run_campaign("summer", [make_item(ContentType.TEXT_ONLY)], brand)
        )
        while not orchestrator.is_generating("summer"):
            await asyncio.sleep(0)

        with pytest.raises(GenerationInProgressError):
            await orchestrator.run_campaign("summer", [make_item(ContentType.TEXT_ONLY)], brand)

        # Other campaigns are independent
        other = await orchestrator.run_campaign("winter", [], brand)
        assert other.status is RunStatus.COMPLETED

        release.set()
        progress = await first
        assert progress.status is RunStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_cancellation(self, orchestrator, make_item, brand, mock_text_service, mock_store):
        async def _cancel_then_answer(*args):
            assert orchestrator.cancel_generation("summer", "stop requested") is True
            return "Last post"

        mock_text_service.generate_text.side_effect = _cancel_then_answer
        items = [make_item(ContentType.TEXT_ONLY, "a"), make_item(ContentType.TEXT_ONLY, "b")]

        progress = await orchestrator.run_campaign("summer", items, brand)

        assert progress.status is RunStatus.CANCELLED
        assert progress.completed_items == 1
        assert mock_text_service.generate_text.await_count == 1
        assert orchestrator.is_generating("summer") is False

    @pytest.mark.asyncio
    async def test_task_cancellation_finishes_progress(self, orchestrator, make_item, brand, mock_text_service):
        never = asyncio.Event()

        async def _hang(*args):
            await never.wait()

        mock_text_service.generate_text.side_effect = _hang
        task = asyncio.create_task(
            orchestrator.run_campaign("summer", [make_item(ContentType.TEXT_ONLY)], brand)
        )
        while not mock_text_service.generate_text.await_count:
            await asyncio.sleep(0)
        assert orchestrator.is_generating("summer") is True

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert orchestrator.get_generation_progress("summer").status is RunStatus.CANCELLED
        assert orchestrator.is_generating("summer") is False

        mock_text_service.generate_text.side_effect = None
        progress = await orchestrator.run_campaign("summer", [make_item(ContentType.TEXT_ONLY)], brand)
        assert progress.status is RunStatus.COMPLETED

    def test_cancel_unknown_campaign(self, orchestrator):
        assert orchestrator.cancel_generation("nothing") is False

    @pytest.mark.asyncio
    async def test_cancel_during_backoff(
        self, mock_text_service, mock_store, make_item, brand, retry_manager, strategy_config
    ):
        slow_backoff = strategy_config.replace(retry=strategy_config.retry.replace(base_delay=30.0, max_delay=30.0))
        orchestrator = GenerationOrchestrator(
            text_service=mock_text_service,
            publication_store=mock_store,
            retry_manager=retry_manager,
            strategy_config=slow_backoff,
        )
        mock_text_service.generate_text.side_effect = AIServiceError("slow down", ErrorKind.RATE_LIMIT_ERROR)

        task = asyncio.create_task(
            orchestrator.run_campaign("summer", [make_item(ContentType.TEXT_ONLY)], brand)
        )
        while not mock_text_service.generate_text.await_count:
            await asyncio.sleep(0)
        orchestrator.cancel_generation("summer")

        progress = await asyncio.wait_for(task, timeout=5)
        assert progress.status is RunStatus.CANCELLED
        mock_store.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_persistence_failure_is_item_error(self, orchestrator, make_item, brand, mock_store):
        mock_store.save.side_effect = RuntimeError("disk full")

        progress = await orchestrator.run_campaign("summer", [make_item(ContentType.TEXT_ONLY)], brand)

        assert progress.status is RunStatus.FAILED
        assert "disk full" in progress.errors[0].message

    @pytest.mark.asyncio
    async def test_unexpected_exception_marks_failed(
        self, mock_text_service, mock_image_service, mock_store, make_item, brand, assets, single_template
    ):
        class BrokenInferer:
            def infer(self, template):
                raise RuntimeError("bug in inferer")

        orchestrator = GenerationOrchestrator(
            text_service=mock_text_service,
            publication_store=mock_store,
            image_service=mock_image_service,
            text_area_inferer=BrokenInferer(),
        )

        with pytest.raises(RuntimeError):
            await orchestrator.run_campaign(
                "summer",
                [make_item(ContentType.TEXT_TEMPLATE, template_id="promo")],
                brand,
                assets,
                [single_template],
            )

        assert orchestrator.get_generation_progress("summer").status is RunStatus.FAILED
        assert orchestrator.is_generating("summer") is False

    @pytest.mark.asyncio
    async def test_item_asset_filter(self, orchestrator, make_item, brand, assets, mock_image_service):
        await orchestrator.run_campaign(
            "summer",
            [make_item(ContentType.TEXT_IMAGE, asset_ids=["market"])],
            brand,
            assets,
        )

        assert mock_image_service.generate_image.await_args.args[1].id == "market"

    def test_stats(self, orchestrator):
        stats = orchestrator.get_stats()

        assert stats["active_runs"] == 0
        assert set(stats["supported_content_types"]) == {ct.value for ct in ContentType}
        assert stats["has_fallback_text"] is False
