"""Provider configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    CAROUSEL_DEFAULT_MAX_SLIDES,
    CAROUSEL_MIN_SLIDES,
    IMAGE_QUALITY_BACKGROUND,
    IMAGE_QUALITY_SIMPLE,
    IMAGE_QUALITY_TEMPLATE,
    RETRY_BACKOFF_MULTIPLIER,
    RETRY_BASE_DELAY_SECONDS,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_DELAY_SECONDS,
)

if TYPE_CHECKING:
    from ..content.strategies import StrategyConfig
    from ..services.retry import RetryConfig

# Load .env file
load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "config" / "providers.yaml"


class EnvSettings(BaseSettings):
    """Process-level overrides read from ``CAMPAIGN_CONTENT_*`` variables."""

    model_config = SettingsConfigDict(env_prefix="CAMPAIGN_CONTENT_", extra="ignore")

    config_path: Path | None = None
    log_dir: Path = Path("logs")
    output_dir: Path = Path("output")


class GenerationSettings(BaseModel):
    """Retry policy and strategy tuning."""

    max_attempts: int = Field(default=RETRY_MAX_ATTEMPTS, ge=1)
    base_delay_seconds: float = Field(default=RETRY_BASE_DELAY_SECONDS, ge=0)
    max_delay_seconds: float = Field(default=RETRY_MAX_DELAY_SECONDS, ge=0)
    backoff_multiplier: float = Field(default=RETRY_BACKOFF_MULTIPLIER, ge=1)
    call_timeout_seconds: float | None = Field(default=60.0, gt=0)
    max_carousel_slides: int = Field(default=CAROUSEL_DEFAULT_MAX_SLIDES, ge=CAROUSEL_MIN_SLIDES)
    image_quality: int = Field(default=IMAGE_QUALITY_SIMPLE, ge=1, le=100)
    background_quality: int = Field(default=IMAGE_QUALITY_BACKGROUND, ge=1, le=100)
    template_quality: int = Field(default=IMAGE_QUALITY_TEMPLATE, ge=1, le=100)

    def to_retry_config(self) -> RetryConfig:
        from ..services.retry import RetryConfig

        return RetryConfig(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay_seconds,
            max_delay=self.max_delay_seconds,
            backoff_multiplier=self.backoff_multiplier,
            call_timeout=self.call_timeout_seconds,
        )

    def to_strategy_config(self) -> StrategyConfig:
        from ..content.strategies import StrategyConfig

        return StrategyConfig(
            retry=self.to_retry_config(),
            max_carousel_slides=self.max_carousel_slides,
            image_quality=self.image_quality,
            background_quality=self.background_quality,
            template_quality=self.template_quality,
            slide_quality=self.background_quality,
        )


class TextProviderConfig(BaseModel):
    """Configuration for a text provider."""

    priority: int
    enabled: bool = True
    model: str
    """Provider-prefixed model id, e.g. ``openai/gpt-4o-mini``."""
    base_url: str | None = None
    base_url_env: str | None = None
    api_key: str | None = None
    api_key_env: str | None = None
    timeout: int = 60

    @property
    def model_id(self) -> str:
        """Model id without the provider prefix."""
        return self.model.split("/", 1)[1] if "/" in self.model else self.model

    def get_api_key(self) -> str | None:
        """Get API key from config or environment."""
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            return os.getenv(self.api_key_env)
        return None

    def get_base_url(self) -> str | None:
        """Get base URL from config or environment."""
        if self.base_url:
            return self.base_url
        if self.base_url_env:
            return os.getenv(self.base_url_env)
        return None


class ImageProviderConfig(BaseModel):
    """Configuration for an image provider."""

    priority: int
    enabled: bool = True
    type: Literal["fal", "openai"]
    model: str
    api_key_env: str | None = None
    base_url_env: str | None = None
    timeout: int = 90
    settings: dict[str, Any] = Field(default_factory=dict)

    def get_api_key(self) -> str | None:
        """Get API key from environment."""
        if self.api_key_env:
            return os.getenv(self.api_key_env)
        return None

    def get_base_url(self) -> str | None:
        """Get base URL from environment."""
        if self.base_url_env:
            return os.getenv(self.base_url_env)
        return None


class FallbackSettings(BaseModel):
    """Alternate backends used by the fallback_agent recovery.

    When a name is omitted the second enabled provider by priority is used.
    """

    text: str | None = None
    image: str | None = None


class ProviderConfig(BaseModel):
    """Full provider configuration."""

    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    text_providers: dict[str, TextProviderConfig] = Field(default_factory=dict)
    image_providers: dict[str, ImageProviderConfig] = Field(default_factory=dict)
    fallback: FallbackSettings = Field(default_factory=FallbackSettings)

    def get_enabled_text_providers(self) -> list[tuple[str, TextProviderConfig]]:
        """Get enabled text providers sorted by priority."""
        enabled = [
            (name, config)
            for name, config in self.text_providers.items()
            if config.enabled
        ]
        return sorted(enabled, key=lambda x: x[1].priority)

    def get_enabled_image_providers(self) -> list[tuple[str, ImageProviderConfig]]:
        """Get enabled image providers sorted by priority."""
        enabled = [
            (name, config)
            for name, config in self.image_providers.items()
            if config.enabled
        ]
        return sorted(enabled, key=lambda x: x[1].priority)

    def get_fallback_text_provider(self) -> tuple[str, TextProviderConfig] | None:
        return _pick_fallback(self.get_enabled_text_providers(), self.fallback.text)

    def get_fallback_image_provider(self) -> tuple[str, ImageProviderConfig] | None:
        return _pick_fallback(self.get_enabled_image_providers(), self.fallback.image)


def _pick_fallback(enabled: list[tuple[str, Any]], name: str | None) -> tuple[str, Any] | None:
    if name:
        for provider_name, config in enabled:
            if provider_name == name:
                return (provider_name, config)
        return None
    return enabled[1] if len(enabled) > 1 else None


def load_provider_config(config_path: Path | None = None) -> ProviderConfig:
    """Load provider configuration from YAML file."""
    if config_path is None:
        config_path = EnvSettings().config_path or DEFAULT_CONFIG_PATH

    config_path = Path(config_path)
    if not config_path.exists():
        # Return default config if file doesn't exist
        return ProviderConfig()

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return ProviderConfig(**data)
