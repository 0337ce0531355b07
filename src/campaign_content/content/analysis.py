"""Pure text and asset heuristics shared by the strategies.

Nothing here calls an external service:
- Platform limits and caption validation
- Keyword extraction and tone classification for image prompts
- Compatible asset filtering and ranking
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Iterable

from ..constants import (
    KEYWORD_MAX_COUNT,
    KEYWORD_MIN_LENGTH,
    PLATFORM_LIMITS,
    PLATFORM_MAX_HASHTAGS,
    SUPPORTED_ASSET_MIME_TYPES,
    TWITTER_URL_LENGTH,
    Platform,
    PlatformLimits,
)
from .models import MediaAsset

_HASHTAG_RE = re.compile(r"#\w+")
_MENTION_RE = re.compile(r"@\w+")
_URL_RE = re.compile(r"https?://\S+")
_NON_WORD_RE = re.compile(r"[^\w]")

# Campaigns are written in English or Spanish
STOP_WORDS: frozenset[str] = frozenset({
    # English
    "about", "after", "again", "also", "because", "been", "before", "being", "both",
    "could", "does", "doing", "down", "each", "even", "every", "from", "have", "having",
    "here", "into", "just", "like", "made", "make", "many", "more", "most", "much",
    "must", "only", "other", "over", "same", "should", "some", "such", "than", "that",
    "their", "them", "then", "there", "these", "they", "this", "those", "through",
    "very", "want", "were", "what", "when", "where", "which", "while", "will", "with",
    "would", "your", "yours",
    # Spanish
    "como", "pero", "sobre", "este", "entre", "cuando", "todo", "esta", "también",
    "había", "hasta", "desde", "está", "porque", "sólo", "puede", "todos", "así",
    "parte", "tiene", "donde", "bien", "tiempo", "mismo", "ahora", "cada", "después",
    "otros", "aunque", "hace", "otra", "durante", "siempre", "tanto", "ella", "según",
    "menos", "antes", "mientras", "lugar", "solo", "nosotros", "pueden", "usted",
    "aquí", "debe",
})

TONE_INDICATORS: dict[str, tuple[str, ...]] = {
    "professional": (
        "professional", "business", "company", "service", "quality", "experience",
        "profesional", "empresa", "negocio", "servicio", "calidad", "experiencia",
    ),
    "friendly": (
        "friend", "family", "happy", "cheerful", "fun", "great",
        "amigo", "familia", "feliz", "alegre", "divertido", "genial",
    ),
    "urgent": (
        "now", "urgent", "fast", "immediately", "soon", "today only",
        "ahora", "urgente", "rápido", "inmediato", "pronto",
    ),
    "inspirational": (
        "dream", "goal", "achieve", "success", "inspire", "motivate",
        "sueño", "meta", "lograr", "éxito", "inspirar", "motivar",
    ),
    "informative": (
        "information", "data", "learn", "discover", "know", "guide",
        "información", "datos", "conocer", "aprender", "descubrir", "saber",
    ),
}
DEFAULT_TONE = "professional"


# =============================================================================
# Platform limits and validation
# =============================================================================

def get_platform_limits(platform: Platform) -> PlatformLimits:
    return PLATFORM_LIMITS[platform]


def effective_length(text: str, platform: Platform) -> int:
    """Caption length as the platform counts it."""
    if platform is Platform.TWITTER:
        stripped = _URL_RE.sub("", text)
        return len(stripped) + TWITTER_URL_LENGTH * len(_URL_RE.findall(text))
    return len(text)


def validation_problems(text: str, platform: Platform) -> list[str]:
    """Reasons ``text`` cannot be published on ``platform`` (empty when valid)."""
    problems: list[str] = []
    if not text or not text.strip():
        return ["empty text"]

    limits = get_platform_limits(platform)
    length = effective_length(text, platform)
    if length > limits.max_characters:
        problems.append(f"{length} characters exceeds {platform.value} limit of {limits.max_characters}")

    max_hashtags = PLATFORM_MAX_HASHTAGS.get(platform)
    if max_hashtags is not None:
        hashtags = len(_HASHTAG_RE.findall(text))
        if hashtags > max_hashtags:
            problems.append(f"{hashtags} hashtags exceeds {platform.value} limit of {max_hashtags}")

    return problems


def validate_content(text: str, platform: Platform) -> bool:
    return not validation_problems(text, platform)


# =============================================================================
# Prompt heuristics
# =============================================================================

def extract_keywords(text: str, limit: int = KEYWORD_MAX_COUNT) -> list[str]:
    """Most frequent meaningful words, hashtags/mentions/URLs removed.

    Ties keep first-appearance order.
    """
    clean = _URL_RE.sub("", text)
    clean = _HASHTAG_RE.sub("", clean)
    clean = _MENTION_RE.sub("", clean).lower()

    words = (_NON_WORD_RE.sub("", word) for word in clean.split())
    meaningful = [w for w in words if len(w) >= KEYWORD_MIN_LENGTH and w not in STOP_WORDS]
    return [word for word, _ in Counter(meaningful).most_common(limit)]


def classify_tone(text: str) -> str:
    """Dominant tone bucket by indicator hits; professional when nothing matches."""
    lowered = text.lower()
    best_tone, best_score = DEFAULT_TONE, 0
    for tone, indicators in TONE_INDICATORS.items():
        score = sum(1 for indicator in indicators if indicator in lowered)
        if score > best_score:
            best_tone, best_score = tone, score
    return best_tone


# =============================================================================
# Assets
# =============================================================================

def is_compatible_asset(asset: MediaAsset) -> bool:
    return asset.mime_type.lower() in SUPPORTED_ASSET_MIME_TYPES


def rank_assets(assets: Iterable[MediaAsset]) -> list[MediaAsset]:
    """Compatible assets, images before videos, then larger pixel area first."""
    compatible = [asset for asset in assets if is_compatible_asset(asset)]
    # sorted() is stable, so equal assets keep their input order
    return sorted(compatible, key=lambda a: (a.asset_type != "image", -a.pixel_area))


def select_best_asset(assets: Iterable[MediaAsset]) -> MediaAsset | None:
    ranked = rank_assets(assets)
    return ranked[0] if ranked else None
