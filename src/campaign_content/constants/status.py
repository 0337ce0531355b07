"""Status enums and taxonomies for campaign content generation.

This module contains all enum definitions shared across the pipeline:
- Content types and social platforms
- Error taxonomy for external AI calls
- Generation run lifecycle states
- Recovery actions chosen after step-level retries are exhausted

AI CONTEXT:
-----------
A generation run is a small state machine:
  GENERATING -> COMPLETED | COMPLETED_WITH_ERRORS | FAILED | CANCELLED

Planning happens upstream, so a run starts directly in GENERATING.

MODIFICATION GUIDE:
------------------
- Add new enum values at the END to maintain backwards compatibility
- ErrorKind is a closed taxonomy: classification rules live in services/errors.py
"""

from enum import Enum


# =============================================================================
# CONTENT TYPES AND PLATFORMS
# =============================================================================

class ContentType(str, Enum):
    """Kind of publication a content plan item asks for.

    Each value maps to exactly one generation strategy.
    """

    TEXT_ONLY = "text_only"
    """Caption only, no visual asset."""

    TEXT_IMAGE = "text_image"
    """Caption plus one composed image anchored on a brand asset."""

    TEXT_TEMPLATE = "text_template"
    """Caption plus an image rendered through a template with text areas."""

    CAROUSEL = "carousel"
    """Caption plus an ordered set of coherent slides."""

    @property
    def requires_image_service(self) -> bool:
        """Whether generating this type needs an image backend."""
        return self is not ContentType.TEXT_ONLY


class Platform(str, Enum):
    """Social networks a publication can target."""

    INSTAGRAM = "instagram"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    FACEBOOK = "facebook"


# =============================================================================
# ERROR TAXONOMY
# =============================================================================

class ErrorKind(str, Enum):
    """Fixed taxonomy for failures of external AI calls.

    Retryable by default: NETWORK_ERROR, TIMEOUT_ERROR, RATE_LIMIT_ERROR,
    SERVICE_UNAVAILABLE.
    """

    NETWORK_ERROR = "network_error"
    """Connection could not be established or was dropped."""

    TIMEOUT_ERROR = "timeout_error"
    """The call exceeded its own timeout."""

    RATE_LIMIT_ERROR = "rate_limit_error"
    """Provider answered HTTP 429."""

    AUTHENTICATION_ERROR = "authentication_error"
    """Provider answered HTTP 401 or 403."""

    VALIDATION_ERROR = "validation_error"
    """Request rejected (HTTP 400) or generated output failed validation."""

    QUOTA_EXCEEDED = "quota_exceeded"
    """Account quota or credits exhausted."""

    SERVICE_UNAVAILABLE = "service_unavailable"
    """Provider answered HTTP 500, 502, 503 or 504."""

    UNKNOWN_ERROR = "unknown_error"
    """Anything else."""


# =============================================================================
# GENERATION RUN STATUS
# =============================================================================

class RunStatus(str, Enum):
    """Lifecycle of one campaign generation run.

    Workflow:
        GENERATING -> COMPLETED
                   -> COMPLETED_WITH_ERRORS
                   -> FAILED
                   -> CANCELLED
    """

    GENERATING = "generating"
    """Items are being processed."""

    COMPLETED = "completed"
    """Every item produced a publication."""

    COMPLETED_WITH_ERRORS = "completed_with_errors"
    """Some items failed; completed items remain usable."""

    FAILED = "failed"
    """No item succeeded, or the run aborted unexpectedly."""

    CANCELLED = "cancelled"
    """Stopped on request; completed items are kept."""

    @property
    def is_terminal(self) -> bool:
        """Check if the run can no longer change."""
        return self is not RunStatus.GENERATING


# =============================================================================
# RECOVERY ACTIONS
# =============================================================================

class RecoveryAction(str, Enum):
    """Coarse escalation chosen once step-level retries are exhausted."""

    EXPONENTIAL_BACKOFF = "exponential_backoff"
    """Wait one more backoff interval, then rerun."""

    RETRY_WITH_TIMEOUT = "retry_with_timeout"
    """Rerun once with an extended per-call timeout."""

    FALLBACK_AGENT = "fallback_agent"
    """Rerun against the alternate backend."""

    SIMPLIFIED_GENERATION = "simplified_generation"
    """Rerun with a reduced feature set."""

    CONTENT_OPTIMIZATION = "content_optimization"
    """Rerun with a shortened brief and an explicit length limit."""

    STANDARD_RETRY = "standard_retry"
    """Rerun unchanged."""
