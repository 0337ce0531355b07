"""Unit tests for ProgressTracker."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from campaign_content.constants import ErrorKind, RunStatus
from campaign_content.content.models import GenerationErrorRecord
from campaign_content.services.progress import ProgressTracker


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker(clock: FakeClock) -> ProgressTracker:
    return ProgressTracker(clock=clock)


class TestProgressTracker:
    """Tests for ProgressTracker."""

    @pytest.mark.asyncio
    async def test_create_progress(self, tracker: ProgressTracker):
        progress = await tracker.create_progress("summer", total=4)

        assert progress.status is RunStatus.GENERATING
        assert progress.total_items == 4
        assert progress.completed_items == 0
        assert progress.estimated_seconds_remaining is None
        assert tracker.get_progress("summer") is progress

    @pytest.mark.asyncio
    async def test_refuses_second_active_record(self, tracker: ProgressTracker):
        await tracker.create_progress("summer", total=1)

        with pytest.raises(RuntimeError):
            await tracker.create_progress("summer", total=1)

    @pytest.mark.asyncio
    async def test_new_run_after_terminal(self, tracker: ProgressTracker):
        await tracker.create_progress("summer", total=1)
        await tracker.complete_progress("summer", RunStatus.FAILED)

        progress = await tracker.create_progress("summer", total=2)
        assert progress.total_items == 2

    @pytest.mark.asyncio
    async def test_estimate_after_completion(self, tracker: ProgressTracker, clock: FakeClock):
        await tracker.create_progress("summer", total=4)
        clock.now += 10.0

        progress = await tracker.increment_completed("summer")

        assert progress.completed_items == 1
        assert progress.estimated_seconds_remaining == pytest.approx(30.0)
        assert progress.percentage == 25.0

    @pytest.mark.asyncio
    async def test_snapshots_are_replaced(self, tracker: ProgressTracker):
        first = await tracker.create_progress("summer", total=2)
        second = await tracker.update_current("summer", "item-1", "Generating text")

        assert first.current_item_id is None
        assert second.current_item_id == "item-1"
        assert second.current_step == "Generating text"

    @pytest.mark.asyncio
    async def test_add_error(self, tracker: ProgressTracker):
        await tracker.create_progress("summer", total=2)
        record = GenerationErrorRecord(item_id="item-2", error_kind=ErrorKind.QUOTA_EXCEEDED, message="no credits")

        progress = await tracker.add_error("summer", record)

        assert progress.errors == (record,)
        assert progress.failed_item_ids == ["item-2"]

    @pytest.mark.asyncio
    async def test_complete_progress(self, tracker: ProgressTracker):
        await tracker.create_progress("summer", total=1)
        await tracker.update_current("summer", "item-1", "Generating")
        await tracker.increment_completed("summer")

        progress = await tracker.complete_progress("summer", RunStatus.COMPLETED)

        assert progress.is_terminal
        assert progress.completed_at is not None
        assert progress.current_item_id is None
        assert progress.estimated_seconds_remaining == 0.0

    @pytest.mark.asyncio
    async def test_complete_requires_terminal_status(self, tracker: ProgressTracker):
        await tracker.create_progress("summer", total=1)

        with pytest.raises(ValueError):
            await tracker.complete_progress("summer", RunStatus.GENERATING)

    @pytest.mark.asyncio
    async def test_terminal_record_is_frozen(self, tracker: ProgressTracker):
        await tracker.create_progress("summer", total=1)
        await tracker.complete_progress("summer", RunStatus.CANCELLED)

        with pytest.raises(RuntimeError):
            await tracker.increment_completed("summer")

    @pytest.mark.asyncio
    async def test_unknown_campaign(self, tracker: ProgressTracker):
        assert tracker.get_progress("missing") is None
        with pytest.raises(KeyError):
            await tracker.update_current("missing", None, "x")

    @pytest.mark.asyncio
    async def test_callback_receives_every_snapshot(self, clock: FakeClock):
        callback = AsyncMock()
        tracker = ProgressTracker(callback=callback, clock=clock)

        await tracker.create_progress("summer", total=1)
        await tracker.increment_completed("summer")
        await tracker.complete_progress("summer", RunStatus.COMPLETED)

        statuses = [call.args[0].status for call in callback.await_args_list]
        assert statuses == [RunStatus.GENERATING, RunStatus.GENERATING, RunStatus.COMPLETED]

    @pytest.mark.asyncio
    async def test_stats(self, tracker: ProgressTracker, clock: FakeClock):
        await tracker.create_progress("summer", total=2)
        clock.now += 8.0
        await tracker.increment_completed("summer")
        await tracker.complete_progress("summer", RunStatus.COMPLETED_WITH_ERRORS)
        clock.now += 100.0

        stats = tracker.get_stats("summer")

        assert stats.elapsed_seconds == pytest.approx(8.0)
        assert stats.average_seconds_per_item == pytest.approx(8.0)
        assert stats.percentage == 50.0
        assert tracker.get_stats("missing") is None

    @pytest.mark.asyncio
    async def test_clear_only_terminal(self, tracker: ProgressTracker):
        await tracker.create_progress("active", total=1)
        await tracker.create_progress("done", total=1)
        await tracker.complete_progress("done", RunStatus.COMPLETED)

        tracker.clear()

        assert tracker.get_progress("done") is None
        assert tracker.get_progress("active") is not None
        assert tracker.active_campaigns() == ["active"]
