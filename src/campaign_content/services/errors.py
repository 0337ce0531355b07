"""Error classification for external AI calls.

Every failure raised by a text or image backend is normalized into an
AIServiceError carrying one ErrorKind from a fixed taxonomy. The retry
executor and the recovery selector only ever look at that kind, never at
the provider's own exception types.

Classification order:
    1. AIServiceError keeps its own kind
    2. HTTP status (``status_code`` or ``response.status_code``); 429 and 5xx
       map by status alone, quota wording refines any other status
    3. Quota wording in a status-less message -> QUOTA_EXCEEDED
    4. Timeouts -> TIMEOUT_ERROR
    5. Transport / connection failures -> NETWORK_ERROR
    6. Anything else -> UNKNOWN_ERROR

Usage:
    try:
        text = await service.generate_text(...)
    except Exception as e:
        error = normalize_error(e)
        if should_retry(error, config):
            ...
"""

from __future__ import annotations

import asyncio
import socket
from typing import TYPE_CHECKING, Any

import httpx

from ..constants import RETRYABLE_ERROR_KINDS, ErrorKind

if TYPE_CHECKING:
    from .retry import RetryConfig


# Codes attached to content-level failures raised by the strategies.
CODE_CONTENT_TOO_LONG = "content_too_long"
CODE_EMPTY_CONTENT = "empty_content"
CODE_TEMPLATE_MISSING = "template_missing"
CODE_ASSET_UNAVAILABLE = "asset_unavailable"

RESOURCE_ERROR_CODES = frozenset({CODE_TEMPLATE_MISSING, CODE_ASSET_UNAVAILABLE})

_AUTH_STATUSES = frozenset({401, 403})
_UNAVAILABLE_STATUSES = frozenset({500, 502, 503, 504})
_QUOTA_MARKERS = ("insufficient_quota", "quota exceeded", "insufficient credits", "out of credits")


# =============================================================================
# EXCEPTIONS
# =============================================================================

class AIServiceError(Exception):
    """Classified failure of an external AI call or of generated content.

    Attributes:
        kind: Taxonomy bucket.
        status_code: HTTP status when the provider answered.
        code: Machine-readable detail (e.g. ``content_too_long``).
        retryable: Per-instance override of the kind's default.
        details: Extra context for logs.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN_ERROR,
        *,
        status_code: int | None = None,
        code: str | None = None,
        retryable: bool | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.code = code
        self.retryable = is_retryable(kind) if retryable is None else retryable
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "code": self.code,
            "retryable": self.retryable,
        }

    def __repr__(self) -> str:
        return f"AIServiceError(kind={self.kind.value!r}, message={self.message!r}, code={self.code!r})"


class GenerationCancelled(Exception):
    """Raised at a suspension point once a run has been cancelled."""


class GenerationInProgressError(Exception):
    """A generation run for the campaign is already active."""

    def __init__(self, campaign_id: str):
        super().__init__(f"Generation already in progress for campaign {campaign_id}")
        self.campaign_id = campaign_id


class StrategyConfigurationError(Exception):
    """No usable strategy for a content type with the configured backends."""


class ProviderConfigurationError(Exception):
    """Provider configuration is missing or inconsistent."""


def content_error(code: str, message: str, **details: Any) -> AIServiceError:
    """Build a non-retryable validation failure for generated content."""
    return AIServiceError(
        message,
        ErrorKind.VALIDATION_ERROR,
        code=code,
        retryable=False,
        details=details,
    )


# =============================================================================
# CLASSIFICATION
# =============================================================================

def is_retryable(kind: ErrorKind) -> bool:
    """Default retryability of an error kind."""
    return kind in RETRYABLE_ERROR_KINDS


def should_retry(error: AIServiceError, config: RetryConfig) -> bool:
    """Whether the executor may try again after this error."""
    return error.retryable and error.kind in config.retryable_kinds


def _status_code(error: BaseException) -> int | None:
    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        return status
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def _provider_message(error: BaseException) -> str | None:
    """Extract ``{"error": {"message": ...}}`` from a provider payload if present."""
    body = getattr(error, "body", None)
    if not isinstance(body, dict):
        response = getattr(error, "response", None)
        if isinstance(response, httpx.Response):
            try:
                body = response.json()
            except ValueError:
                body = None
    if not isinstance(body, dict):
        return None

    inner = body.get("error", body)
    if isinstance(inner, dict):
        message = inner.get("message")
        return str(message) if message else None
    if isinstance(inner, str):
        return inner
    return None


def _looks_like(error: BaseException, marker: str) -> bool:
    # SDK exceptions (openai, agno) don't share a base class with httpx
    return any(marker in cls.__name__.lower() for cls in type(error).__mro__)


def _is_quota_message(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _QUOTA_MARKERS)


def classify(error: BaseException) -> ErrorKind:
    """Map any exception onto the fixed ErrorKind taxonomy."""
    if isinstance(error, AIServiceError):
        return error.kind

    quota_message = _is_quota_message(str(error))
    status = _status_code(error)
    if status is not None:
        if status == 429:
            return ErrorKind.RATE_LIMIT_ERROR
        if status in _UNAVAILABLE_STATUSES:
            return ErrorKind.SERVICE_UNAVAILABLE
        if quota_message:
            return ErrorKind.QUOTA_EXCEEDED
        if status in _AUTH_STATUSES:
            return ErrorKind.AUTHENTICATION_ERROR
        if status == 400:
            return ErrorKind.VALIDATION_ERROR
        return ErrorKind.UNKNOWN_ERROR

    if quota_message:
        return ErrorKind.QUOTA_EXCEEDED

    if isinstance(error, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
        return ErrorKind.TIMEOUT_ERROR
    if _looks_like(error, "timeout"):
        return ErrorKind.TIMEOUT_ERROR

    if isinstance(error, (httpx.TransportError, ConnectionError, socket.gaierror, socket.herror)):
        return ErrorKind.NETWORK_ERROR
    if _looks_like(error, "connection"):
        return ErrorKind.NETWORK_ERROR

    return ErrorKind.UNKNOWN_ERROR


def normalize_error(error: BaseException) -> AIServiceError:
    """Wrap any exception in an AIServiceError, keeping the original as cause."""
    if isinstance(error, AIServiceError):
        return error

    kind = classify(error)
    status = _status_code(error)
    message = str(error) or type(error).__name__

    if kind is ErrorKind.VALIDATION_ERROR:
        message = _provider_message(error) or message
    elif kind is ErrorKind.TIMEOUT_ERROR and not str(error):
        message = "Request timed out"

    normalized = AIServiceError(
        message,
        kind,
        status_code=status,
        details={"exception_type": type(error).__name__},
    )
    normalized.__cause__ = error
    return normalized
