"""Bounded retry with exponential backoff for external AI calls.

Every text or image request a strategy makes goes through
``RetryManager.execute_with_retry``. Failures are classified on every
attempt; non-retryable kinds stop immediately, retryable ones back off
``compute_delay(attempt)`` seconds before the next attempt.

Usage:
    manager = RetryManager(metrics=ErrorMetrics())
    result = await manager.execute_with_retry(
        lambda: service.generate_text(brief, voice, platform, limit),
        config=RetryConfig(max_attempts=3),
        operation_name="text_generation",
        token=token,
    )
    if result.success:
        text = result.result
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, TypeVar

from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt

from ..constants import (
    RETRY_BACKOFF_MULTIPLIER,
    RETRY_BASE_DELAY_SECONDS,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_DELAY_SECONDS,
    RETRYABLE_ERROR_KINDS,
    ErrorKind,
)
from .cancellation import CancellationToken
from .errors import AIServiceError, GenerationCancelled, normalize_error, should_retry
from .metrics import ErrorMetrics

_logger = logging.getLogger("retry")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy for a single external call.

    Delays are in seconds. ``call_timeout`` bounds each individual attempt;
    None leaves it to the provider client.
    """
    max_attempts: int = RETRY_MAX_ATTEMPTS
    base_delay: float = RETRY_BASE_DELAY_SECONDS
    max_delay: float = RETRY_MAX_DELAY_SECONDS
    backoff_multiplier: float = RETRY_BACKOFF_MULTIPLIER
    retryable_kinds: frozenset[ErrorKind] = RETRYABLE_ERROR_KINDS
    call_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must not be negative")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be at least 1")

    def replace(self, **changes: Any) -> RetryConfig:
        """Return a copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes)


@dataclass
class RetryResult(Generic[T]):
    """Outcome of ``execute_with_retry``."""
    success: bool
    result: T | None = None
    error: AIServiceError | None = None
    attempts: int = 0
    total_time: float = 0.0
    errors: list[AIServiceError] = field(default_factory=list)


def compute_delay(attempt: int, config: RetryConfig) -> float:
    """Backoff before the attempt following ``attempt`` (1-indexed)."""
    if attempt < 1:
        raise ValueError("attempt is 1-indexed")
    delay = config.base_delay * (config.backoff_multiplier ** (attempt - 1))
    return min(config.max_delay, delay)


class RetryManager:
    """Runs async operations under a RetryConfig.

    One instance is constructed per process (or per test) and injected into
    the strategies and the orchestrator.
    """

    def __init__(
        self,
        default_config: RetryConfig | None = None,
        metrics: ErrorMetrics | None = None,
    ):
        self.default_config = default_config or RetryConfig()
        self.metrics = metrics

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        config: RetryConfig | None = None,
        operation_name: str = "operation",
        token: CancellationToken | None = None,
    ) -> RetryResult[T]:
        """Run ``operation`` until it succeeds, fails terminally or attempts run out.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt.
            config: Policy override; defaults to the manager's config.
            operation_name: Label used in logs.
            token: Cancellation token checked before each attempt and while sleeping.

        Returns:
            RetryResult with the value or the last classified error.

        Raises:
            GenerationCancelled: If the token is cancelled. Never retried.
        """
        config = config or self.default_config
        start_time = time.monotonic()
        errors: list[AIServiceError] = []
        attempts = 0

        def _retry_predicate(retry_state: RetryCallState) -> bool:
            outcome = retry_state.outcome
            if outcome is None or not outcome.failed:
                return False
            exc = outcome.exception()
            if isinstance(exc, GenerationCancelled):
                return False
            return should_retry(normalize_error(exc), config)

        def _wait(retry_state: RetryCallState) -> float:
            return compute_delay(retry_state.attempt_number, config)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(config.max_attempts),
            wait=_wait,
            retry=_retry_predicate,
            sleep=token.sleep if token else asyncio.sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    if token:
                        token.raise_if_cancelled()
                    try:
                        value = await self._run_once(operation, config.call_timeout)
                    except GenerationCancelled:
                        raise
                    except Exception as e:
                        error = normalize_error(e)
                        errors.append(error)
                        self._note_failure(error, operation_name, attempts, config)
                        raise
        except GenerationCancelled:
            _logger.info(f"RETRY | op:{operation_name} | CANCELLED | attempt:{attempts}")
            raise
        except Exception as e:
            error = errors[-1] if errors else normalize_error(e)
            total_time = time.monotonic() - start_time
            _logger.warning(
                f"RETRY | op:{operation_name} | GAVE_UP | attempts:{attempts} | "
                f"kind:{error.kind.value} | duration:{total_time:.2f}s"
            )
            return RetryResult(
                success=False,
                error=error,
                attempts=attempts,
                total_time=total_time,
                errors=errors,
            )

        total_time = time.monotonic() - start_time
        if attempts > 1:
            _logger.info(
                f"RETRY | op:{operation_name} | RECOVERED | attempts:{attempts} | "
                f"duration:{total_time:.2f}s"
            )
        return RetryResult(
            success=True,
            result=value,
            attempts=attempts,
            total_time=total_time,
            errors=errors,
        )

    @staticmethod
    async def _run_once(operation: Callable[[], Awaitable[T]], timeout: float | None) -> T:
        if timeout is None:
            return await operation()
        return await asyncio.wait_for(operation(), timeout=timeout)

    def _note_failure(
        self,
        error: AIServiceError,
        operation_name: str,
        attempt: int,
        config: RetryConfig,
    ) -> None:
        will_retry = should_retry(error, config) and attempt < config.max_attempts
        _logger.warning(
            f"RETRY | op:{operation_name} | attempt:{attempt}/{config.max_attempts} | "
            f"kind:{error.kind.value} | retry:{will_retry} | error:{error.message[:200]}"
        )
        if self.metrics is not None:
            self.metrics.record(error)
