"""Limit constants for campaign content generation.

This module contains all limits and constraints:
- Per-platform caption limits and format support
- Carousel slide counts and image dimensions
- Retry and timeout defaults
- Template text-area caps

AI CONTEXT:
-----------
Platform limits come from each network's publishing rules. A caption that
exceeds them is rejected before any image work starts, so the values here
directly decide which generations fail validation.

MODIFICATION GUIDE:
------------------
- PLATFORM_* tables: keep one entry per Platform member
- RETRY_* settings: seconds, not milliseconds
- CAROUSEL_DEFAULT_MAX_SLIDES: engagement cap applied on top of platform limits
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .status import ErrorKind, Platform


@dataclass(frozen=True)
class PlatformLimits:
    """Caption constraints for one platform."""

    max_characters: int
    supports_hashtags: bool = True
    supports_emojis: bool = True
    supports_line_breaks: bool = True


# =============================================================================
# PLATFORM LIMITS
# =============================================================================

PLATFORM_LIMITS: Final[dict[Platform, PlatformLimits]] = {
    Platform.INSTAGRAM: PlatformLimits(max_characters=2200),
    Platform.LINKEDIN: PlatformLimits(max_characters=3000),
    Platform.TWITTER: PlatformLimits(max_characters=280),
    Platform.FACEBOOK: PlatformLimits(max_characters=63206),
}
"""Caption limits per platform."""

PLATFORM_MAX_HASHTAGS: Final[dict[Platform, int]] = {
    Platform.INSTAGRAM: 30,
    Platform.LINKEDIN: 5,
}
"""Hashtag ceilings for platforms that enforce or strongly penalize more."""

TWITTER_URL_LENGTH: Final[int] = 23
"""Characters a link counts for on Twitter, whatever its real length."""

PLATFORM_MAX_CAROUSEL_SLIDES: Final[dict[Platform, int]] = {
    Platform.INSTAGRAM: 10,
    Platform.LINKEDIN: 5,
    Platform.FACEBOOK: 10,
    Platform.TWITTER: 4,
}
"""Maximum images a single carousel post may carry."""

PLATFORM_DIMENSIONS: Final[dict[Platform, tuple[int, int]]] = {
    Platform.INSTAGRAM: (1080, 1080),
    Platform.FACEBOOK: (1200, 630),
    Platform.LINKEDIN: (1200, 627),
    Platform.TWITTER: (1200, 675),
}
"""Recommended (width, height) for feed images."""


# =============================================================================
# CAROUSEL
# =============================================================================

CAROUSEL_DEFAULT_MAX_SLIDES: Final[int] = 5
"""Slide cap applied even when the platform and assets allow more."""

CAROUSEL_MIN_SLIDES: Final[int] = 2
"""A carousel with fewer slides is not a carousel."""


# =============================================================================
# RETRY SETTINGS
# =============================================================================

RETRY_MAX_ATTEMPTS: Final[int] = 3
"""Attempts per external call, including the first one."""

RETRY_BASE_DELAY_SECONDS: Final[float] = 1.0
"""Delay before the second attempt."""

RETRY_MAX_DELAY_SECONDS: Final[float] = 30.0
"""Upper bound for any single backoff delay."""

RETRY_BACKOFF_MULTIPLIER: Final[float] = 2.0
"""Growth factor between consecutive delays."""

RETRY_MIN_DELAY_SECONDS: Final[float] = 0.1
"""Smallest base delay accepted when tuning a strategy."""

RETRYABLE_ERROR_KINDS: Final[frozenset[ErrorKind]] = frozenset({
    ErrorKind.NETWORK_ERROR,
    ErrorKind.TIMEOUT_ERROR,
    ErrorKind.RATE_LIMIT_ERROR,
    ErrorKind.SERVICE_UNAVAILABLE,
})
"""Error kinds that are retried unless an instance opts out."""

EXTENDED_TIMEOUT_FACTOR: Final[float] = 2.0
"""Multiplier applied to the per-call timeout by the retry_with_timeout recovery."""

EXTENDED_TIMEOUT_DEFAULT_SECONDS: Final[float] = 120.0
"""Per-call timeout used by retry_with_timeout when none was configured."""

ERROR_METRICS_MAX_STORED: Final[int] = 1000
"""Errors kept in memory by ErrorMetrics."""


# =============================================================================
# CONTENT SHAPING
# =============================================================================

OPTIMIZED_BRIEF_MAX_LENGTH: Final[int] = 100
"""Brief length kept by the content_optimization recovery."""

KEYWORD_MIN_LENGTH: Final[int] = 4
"""Shortest word considered when extracting image keywords."""

KEYWORD_MAX_COUNT: Final[int] = 5
"""Keywords passed on to an image prompt."""

SUPPORTED_ASSET_MIME_TYPES: Final[frozenset[str]] = frozenset({
    "image/jpeg",
    "image/png",
    "image/webp",
    "video/mp4",
})
"""Asset formats the image backends accept as a base."""


# =============================================================================
# IMAGE QUALITY
# =============================================================================

IMAGE_QUALITY_SIMPLE: Final[int] = 85
"""Quality for a single composed image."""

IMAGE_QUALITY_BACKGROUND: Final[int] = 90
"""Quality for template backgrounds and carousel slides."""

IMAGE_QUALITY_TEMPLATE: Final[int] = 95
"""Quality for the final template composition."""


# =============================================================================
# TIME ESTIMATES
# =============================================================================
# Static heuristics for UX only, never used as deadlines.

ESTIMATED_SECONDS_TEXT_ONLY: Final[float] = 10.0
ESTIMATED_SECONDS_TEXT_IMAGE: Final[float] = 25.0
ESTIMATED_SECONDS_TEXT_TEMPLATE: Final[float] = 60.0
ESTIMATED_SECONDS_CAROUSEL: Final[float] = 90.0
