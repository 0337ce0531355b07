"""Recovery action selection.

Consulted by the orchestrator only after a strategy's own step-level
retries are exhausted. It picks a single, coarser escalation for the item;
the orchestrator runs it at most once, so every item terminates.

    RATE_LIMIT_ERROR                          -> exponential_backoff
    NETWORK_ERROR / TIMEOUT_ERROR             -> retry_with_timeout
    SERVICE_UNAVAILABLE / AUTH / QUOTA        -> fallback_agent (alternate backend)
                                                 else simplified_generation
                                                 (standard_retry for text_only)
    template_missing / asset_unavailable      -> simplified_generation
    VALIDATION_ERROR                          -> content_optimization
    anything else                             -> standard_retry
"""

from __future__ import annotations

import logging

from ..constants import ContentType, ErrorKind, RecoveryAction
from .errors import RESOURCE_ERROR_CODES

_logger = logging.getLogger("generation")

_PROVIDER_FAILURES = frozenset({
    ErrorKind.SERVICE_UNAVAILABLE,
    ErrorKind.AUTHENTICATION_ERROR,
    ErrorKind.QUOTA_EXCEEDED,
})

_SIMPLIFIED_TYPES: dict[ContentType, ContentType] = {
    ContentType.CAROUSEL: ContentType.TEXT_IMAGE,
    ContentType.TEXT_TEMPLATE: ContentType.TEXT_IMAGE,
    ContentType.TEXT_IMAGE: ContentType.TEXT_ONLY,
    ContentType.TEXT_ONLY: ContentType.TEXT_ONLY,
}


def simplified_content_type(content_type: ContentType) -> ContentType:
    """Next content type down the feature ladder."""
    return _SIMPLIFIED_TYPES[content_type]


class RecoverySelector:
    """Maps a classified failure onto one RecoveryAction."""

    def select(
        self,
        error_kind: ErrorKind,
        content_type: ContentType,
        has_fallback_backend: bool = False,
        error_code: str | None = None,
    ) -> RecoveryAction:
        action = self._choose(error_kind, content_type, has_fallback_backend, error_code)
        _logger.info(
            f"RECOVERY | kind:{error_kind.value} | code:{error_code} | "
            f"type:{content_type.value} | fallback:{has_fallback_backend} | action:{action.value}"
        )
        return action

    @staticmethod
    def _choose(
        error_kind: ErrorKind,
        content_type: ContentType,
        has_fallback_backend: bool,
        error_code: str | None,
    ) -> RecoveryAction:
        if error_code in RESOURCE_ERROR_CODES:
            return RecoveryAction.SIMPLIFIED_GENERATION

        if error_kind is ErrorKind.RATE_LIMIT_ERROR:
            return RecoveryAction.EXPONENTIAL_BACKOFF

        if error_kind in (ErrorKind.NETWORK_ERROR, ErrorKind.TIMEOUT_ERROR):
            return RecoveryAction.RETRY_WITH_TIMEOUT

        if error_kind in _PROVIDER_FAILURES:
            if has_fallback_backend:
                return RecoveryAction.FALLBACK_AGENT
            if content_type is ContentType.TEXT_ONLY:
                return RecoveryAction.STANDARD_RETRY
            return RecoveryAction.SIMPLIFIED_GENERATION

        if error_kind is ErrorKind.VALIDATION_ERROR:
            return RecoveryAction.CONTENT_OPTIMIZATION

        return RecoveryAction.STANDARD_RETRY
