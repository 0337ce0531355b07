"""Services module for cross-cutting concerns.

Provides services shared by every strategy and by the orchestrator:
- errors: ErrorKind classification and typed exceptions
- RetryManager: bounded retries with exponential backoff
- CancellationToken: cooperative cancellation per run
- ErrorMetrics: injected history of classified errors
- ProgressTracker: live progress per campaign run
- RecoverySelector: escalation after retries are exhausted
- JsonPublicationStore: saves publications to disk

Each service handles one specific concern and is constructed explicitly;
there are no module-level singletons.
"""

from .cancellation import CancellationToken
from .errors import (
    AIServiceError,
    GenerationCancelled,
    GenerationInProgressError,
    ProviderConfigurationError,
    StrategyConfigurationError,
    classify,
    is_retryable,
    normalize_error,
    should_retry,
)
from .metrics import ErrorMetrics, ErrorStats
from .output import JsonPublicationStore
from .progress import ProgressStats, ProgressTracker
from .recovery import RecoverySelector, simplified_content_type
from .retry import RetryConfig, RetryManager, RetryResult, compute_delay

__all__ = [
    # Errors
    "AIServiceError",
    "GenerationCancelled",
    "GenerationInProgressError",
    "ProviderConfigurationError",
    "StrategyConfigurationError",
    "classify",
    "is_retryable",
    "normalize_error",
    "should_retry",
    # Retry
    "RetryConfig",
    "RetryManager",
    "RetryResult",
    "compute_delay",
    "CancellationToken",
    # Metrics and progress
    "ErrorMetrics",
    "ErrorStats",
    "ProgressStats",
    "ProgressTracker",
    # Recovery
    "RecoverySelector",
    "simplified_content_type",
    # Output
    "JsonPublicationStore",
]
