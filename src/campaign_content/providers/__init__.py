"""AI providers - text (Agno) and image (fal.ai / OpenAI) generation."""

from .config import (
    EnvSettings,
    GenerationSettings,
    ImageProviderConfig,
    ProviderConfig,
    TextProviderConfig,
    load_provider_config,
)
from .factory import ProviderServices, create_services
from .image import ImageProvider
from .interfaces import (
    ImageGenerationService,
    ImageResult,
    PublicationStore,
    TextGenerationService,
)
from .text import TextProvider

__all__ = [
    "TextProvider",
    "ImageProvider",
    "ImageResult",
    "TextGenerationService",
    "ImageGenerationService",
    "PublicationStore",
    "ProviderServices",
    "create_services",
    "EnvSettings",
    "GenerationSettings",
    "ImageProviderConfig",
    "ProviderConfig",
    "TextProviderConfig",
    "load_provider_config",
]
