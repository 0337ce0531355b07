"""Global constants package for campaign content generation.

Centralizes enums, platform tables and retry defaults used throughout the
project. Import from here for consistency.

PACKAGE STRUCTURE:
-----------------
- limits.py   : Platform limits, carousel caps, retry defaults, quality levels
- status.py   : ContentType, Platform, ErrorKind, RunStatus, RecoveryAction

USAGE EXAMPLES:
--------------
    from campaign_content.constants import PLATFORM_LIMITS, Platform
    limits = PLATFORM_LIMITS[Platform.TWITTER]

    from campaign_content.constants import ErrorKind, RunStatus
"""

from .limits import (
    CAROUSEL_DEFAULT_MAX_SLIDES,
    CAROUSEL_MIN_SLIDES,
    ERROR_METRICS_MAX_STORED,
    ESTIMATED_SECONDS_CAROUSEL,
    ESTIMATED_SECONDS_TEXT_IMAGE,
    ESTIMATED_SECONDS_TEXT_ONLY,
    ESTIMATED_SECONDS_TEXT_TEMPLATE,
    EXTENDED_TIMEOUT_DEFAULT_SECONDS,
    EXTENDED_TIMEOUT_FACTOR,
    IMAGE_QUALITY_BACKGROUND,
    IMAGE_QUALITY_SIMPLE,
    IMAGE_QUALITY_TEMPLATE,
    KEYWORD_MAX_COUNT,
    KEYWORD_MIN_LENGTH,
    OPTIMIZED_BRIEF_MAX_LENGTH,
    PLATFORM_DIMENSIONS,
    PLATFORM_LIMITS,
    PLATFORM_MAX_CAROUSEL_SLIDES,
    PLATFORM_MAX_HASHTAGS,
    RETRY_BACKOFF_MULTIPLIER,
    RETRY_BASE_DELAY_SECONDS,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_DELAY_SECONDS,
    RETRY_MIN_DELAY_SECONDS,
    RETRYABLE_ERROR_KINDS,
    SUPPORTED_ASSET_MIME_TYPES,
    TWITTER_URL_LENGTH,
    PlatformLimits,
)
from .status import (
    ContentType,
    ErrorKind,
    Platform,
    RecoveryAction,
    RunStatus,
)

__all__ = [
    # Enums
    "ContentType",
    "ErrorKind",
    "Platform",
    "RecoveryAction",
    "RunStatus",
    # Platform tables
    "PlatformLimits",
    "PLATFORM_LIMITS",
    "PLATFORM_MAX_HASHTAGS",
    "PLATFORM_MAX_CAROUSEL_SLIDES",
    "PLATFORM_DIMENSIONS",
    "TWITTER_URL_LENGTH",
    # Carousel
    "CAROUSEL_DEFAULT_MAX_SLIDES",
    "CAROUSEL_MIN_SLIDES",
    # Retry
    "RETRY_MAX_ATTEMPTS",
    "RETRY_BASE_DELAY_SECONDS",
    "RETRY_MAX_DELAY_SECONDS",
    "RETRY_BACKOFF_MULTIPLIER",
    "RETRY_MIN_DELAY_SECONDS",
    "RETRYABLE_ERROR_KINDS",
    "EXTENDED_TIMEOUT_FACTOR",
    "EXTENDED_TIMEOUT_DEFAULT_SECONDS",
    "ERROR_METRICS_MAX_STORED",
    # Content shaping
    "OPTIMIZED_BRIEF_MAX_LENGTH",
    "KEYWORD_MIN_LENGTH",
    "KEYWORD_MAX_COUNT",
    "SUPPORTED_ASSET_MIME_TYPES",
    # Image quality
    "IMAGE_QUALITY_SIMPLE",
    "IMAGE_QUALITY_BACKGROUND",
    "IMAGE_QUALITY_TEMPLATE",
    # Estimates
    "ESTIMATED_SECONDS_TEXT_ONLY",
    "ESTIMATED_SECONDS_TEXT_IMAGE",
    "ESTIMATED_SECONDS_TEXT_TEMPLATE",
    "ESTIMATED_SECONDS_CAROUSEL",
]
