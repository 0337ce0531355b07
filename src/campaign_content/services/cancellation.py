"""Cooperative cancellation for generation runs.

One token is created per campaign run and passed down to every strategy
call. Nothing is interrupted mid-request: the token is only observed at the
top of the per-item loop, before each external call and during backoff sleeps.
"""

from __future__ import annotations

import asyncio

from .errors import GenerationCancelled


class CancellationToken:
    """Cancellation flag scoped to a single generation run.

    Usage:
        token = CancellationToken()
        await token.sleep(2.0)        # wakes early if cancelled
        token.raise_if_cancelled()    # raises GenerationCancelled
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelled(self.reason or "Generation cancelled")

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless cancelled first.

        Raises:
            GenerationCancelled: If the token is cancelled before or during the sleep.
        """
        self.raise_if_cancelled()
        if seconds > 0:
            try:
                await asyncio.wait_for(self._event.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                pass
        self.raise_if_cancelled()
