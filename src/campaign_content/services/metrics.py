"""In-memory error history for AI calls.

Constructed explicitly and handed to the RetryManager, so every test and
every process owns an independent history.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from ..constants import ERROR_METRICS_MAX_STORED, ErrorKind
from .errors import AIServiceError


@dataclass
class ErrorStats:
    """Aggregate view over a time window."""
    total: int = 0
    by_kind: dict[ErrorKind, int] = field(default_factory=dict)
    retryable_count: int = 0
    average_per_hour: float = 0.0
    window_seconds: float = 3600.0


class ErrorMetrics:
    """Bounded store of recent classified errors.

    Usage:
        metrics = ErrorMetrics()
        manager = RetryManager(metrics=metrics)
        ...
        stats = metrics.get_stats(window_seconds=600)
    """

    def __init__(
        self,
        max_errors: int = ERROR_METRICS_MAX_STORED,
        clock: Callable[[], float] = time.time,
    ):
        self._errors: deque[tuple[float, AIServiceError]] = deque(maxlen=max_errors)
        self._clock = clock

    def record(self, error: AIServiceError) -> None:
        self._errors.append((self._clock(), error))

    def get_stats(self, window_seconds: float = 3600.0) -> ErrorStats:
        """Summarize errors recorded during the last ``window_seconds``."""
        cutoff = self._clock() - window_seconds
        recent = [error for timestamp, error in self._errors if timestamp >= cutoff]

        by_kind: dict[ErrorKind, int] = {}
        for error in recent:
            by_kind[error.kind] = by_kind.get(error.kind, 0) + 1

        hours = window_seconds / 3600.0
        return ErrorStats(
            total=len(recent),
            by_kind=by_kind,
            retryable_count=sum(1 for error in recent if error.retryable),
            average_per_hour=len(recent) / hours if hours > 0 else 0.0,
            window_seconds=window_seconds,
        )

    def clear(self) -> None:
        self._errors.clear()

    def __len__(self) -> int:
        return len(self._errors)
