"""Progress tracking for campaign generation runs.

Holds one live GenerationProgress snapshot per campaign in memory. The
orchestrator writes through the async methods; status pollers read through
``get_progress`` at any time. Snapshots are immutable pydantic models that
are swapped whole on each update, so readers never see a partial write.

These records are not authoritative: the persisted publications are.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from ..constants import RunStatus

if TYPE_CHECKING:
    from ..content.models import GenerationErrorRecord, GenerationProgress


# Logger for progress events
_logger = logging.getLogger("ai_calls")

# Type for progress callback
ProgressCallback = Callable[["GenerationProgress"], Awaitable[None]]


@dataclass
class ProgressStats:
    """Derived figures for a run."""
    percentage: float
    elapsed_seconds: float
    average_seconds_per_item: float | None
    estimated_seconds_remaining: float | None
    error_count: int


class ProgressTracker:
    """Keyed store of live progress records.

    Usage:
        tracker = ProgressTracker(callback=display_progress)
        await tracker.create_progress("summer-sale", total=4)
        await tracker.update_current("summer-sale", "item-1", "Generating text")
        await tracker.increment_completed("summer-sale")
        await tracker.complete_progress("summer-sale", RunStatus.COMPLETED)
    """

    def __init__(
        self,
        callback: ProgressCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the tracker.

        Args:
            callback: Optional coroutine receiving every new snapshot.
            clock: Monotonic time source, injectable for tests.
        """
        self.callback = callback
        self._clock = clock
        self._records: dict[str, GenerationProgress] = {}
        self._started: dict[str, float] = {}
        self._finished: dict[str, float] = {}
        self._lock = asyncio.Lock()

    async def _emit(self, progress: GenerationProgress) -> None:
        if self.callback:
            await self.callback(progress)

    async def _update(
        self,
        campaign_id: str,
        changes: Callable[[GenerationProgress], dict[str, Any]],
    ) -> GenerationProgress:
        async with self._lock:
            current = self._require(campaign_id)
            if current.is_terminal:
                raise RuntimeError(f"Progress for campaign {campaign_id} is already {current.status.value}")
            updated = current.model_copy(update=changes(current))
            self._records[campaign_id] = updated
        await self._emit(updated)
        return updated

    def _require(self, campaign_id: str) -> GenerationProgress:
        progress = self._records.get(campaign_id)
        if progress is None:
            raise KeyError(f"No progress for campaign {campaign_id}")
        return progress

    def _estimate_remaining(self, campaign_id: str, completed: int, total: int) -> float | None:
        if completed == 0:
            return None
        elapsed = self._clock() - self._started[campaign_id]
        return (elapsed / completed) * (total - completed)

    async def create_progress(self, campaign_id: str, total: int) -> GenerationProgress:
        """Start a new record for a run.

        Raises:
            RuntimeError: If a non-terminal record already exists for the campaign.
        """
        from ..content.models import GenerationProgress

        async with self._lock:
            existing = self._records.get(campaign_id)
            if existing is not None and not existing.is_terminal:
                raise RuntimeError(f"Campaign {campaign_id} already has an active run")

            progress = GenerationProgress(
                campaign_id=campaign_id,
                status=RunStatus.GENERATING,
                total_items=total,
                started_at=datetime.now(),
            )
            self._records[campaign_id] = progress
            self._started[campaign_id] = self._clock()
            self._finished.pop(campaign_id, None)

        _logger.info(f"CAMPAIGN:{campaign_id} | PROGRESS_START | total:{total}")
        await self._emit(progress)
        return progress

    async def update_current(self, campaign_id: str, item_id: str | None, step: str) -> GenerationProgress:
        return await self._update(
            campaign_id,
            lambda _: {"current_item_id": item_id, "current_step": step},
        )

    async def increment_completed(self, campaign_id: str) -> GenerationProgress:
        def _changes(current: GenerationProgress) -> dict[str, Any]:
            completed = current.completed_items + 1
            return {
                "completed_items": completed,
                "estimated_seconds_remaining": self._estimate_remaining(
                    campaign_id, completed, current.total_items
                ),
            }

        progress = await self._update(campaign_id, _changes)
        remaining = progress.estimated_seconds_remaining
        _logger.info(
            f"CAMPAIGN:{campaign_id} | PROGRESS | completed:{progress.completed_items}/{progress.total_items} | "
            f"eta:{'n/a' if remaining is None else f'{remaining:.1f}s'}"
        )
        return progress

    async def add_error(self, campaign_id: str, error: GenerationErrorRecord) -> GenerationProgress:
        _logger.error(
            f"CAMPAIGN:{campaign_id} | ITEM_ERROR | item:{error.item_id} | "
            f"kind:{error.error_kind.value} | retries:{error.retry_count} | error:{error.message[:200]}"
        )
        return await self._update(campaign_id, lambda current: {"errors": current.errors + (error,)})

    async def complete_progress(self, campaign_id: str, outcome: RunStatus) -> GenerationProgress:
        """Move a run to its terminal state."""
        if not outcome.is_terminal:
            raise ValueError(f"{outcome.value} is not a terminal status")
        progress = await self._update(
            campaign_id,
            lambda _: {
                "status": outcome,
                "completed_at": datetime.now(),
                "current_item_id": None,
                "current_step": None,
                "estimated_seconds_remaining": 0.0 if outcome is RunStatus.COMPLETED else None,
            },
        )
        self._finished[campaign_id] = self._clock()
        _logger.info(
            f"CAMPAIGN:{campaign_id} | PROGRESS_END | status:{outcome.value} | "
            f"completed:{progress.completed_items}/{progress.total_items} | errors:{len(progress.errors)}"
        )
        return progress

    def get_progress(self, campaign_id: str) -> GenerationProgress | None:
        return self._records.get(campaign_id)

    def get_stats(self, campaign_id: str) -> ProgressStats | None:
        progress = self._records.get(campaign_id)
        if progress is None:
            return None

        end = self._finished.get(campaign_id, self._clock())
        elapsed = end - self._started[campaign_id]
        average = elapsed / progress.completed_items if progress.completed_items else None
        return ProgressStats(
            percentage=progress.percentage,
            elapsed_seconds=elapsed,
            average_seconds_per_item=average,
            estimated_seconds_remaining=progress.estimated_seconds_remaining,
            error_count=len(progress.errors),
        )

    def active_campaigns(self) -> list[str]:
        return [cid for cid, progress in self._records.items() if not progress.is_terminal]

    def clear(self, campaign_id: str | None = None) -> None:
        """Forget one terminal record, or every terminal record."""
        targets = [campaign_id] if campaign_id else list(self._records)
        for cid in targets:
            progress = self._records.get(cid)
            if progress is not None and progress.is_terminal:
                del self._records[cid]
                self._started.pop(cid, None)
                self._finished.pop(cid, None)
