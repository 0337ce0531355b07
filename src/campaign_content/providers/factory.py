"""Builds the concrete services for a campaign run from configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ..services.errors import ProviderConfigurationError
from .config import ProviderConfig
from .image import ImageProvider
from .text import TextProvider

_logger = logging.getLogger("generation")


@dataclass
class ProviderServices:
    """Primary and fallback backends resolved from a ProviderConfig."""

    text: TextProvider
    image: ImageProvider | None = None
    fallback_text: TextProvider | None = None
    fallback_image: ImageProvider | None = None

    async def close(self) -> None:
        for provider in (self.image, self.fallback_image):
            if provider is not None:
                await provider.close()


def create_services(
    config: ProviderConfig,
    http_client: httpx.AsyncClient | None = None,
) -> ProviderServices:
    """Instantiate the highest-priority providers and their fallbacks.

    Args:
        config: Loaded provider configuration.
        http_client: Shared client for the image backends (tests inject one).

    Raises:
        ProviderConfigurationError: No text provider is enabled.
    """
    text_providers = config.get_enabled_text_providers()
    if not text_providers:
        raise ProviderConfigurationError("No text providers are enabled")

    name, text_config = text_providers[0]
    services = ProviderServices(text=TextProvider(name, text_config))

    fallback_text = config.get_fallback_text_provider()
    if fallback_text and fallback_text[0] != name:
        services.fallback_text = TextProvider(*fallback_text)

    image_providers = config.get_enabled_image_providers()
    if image_providers:
        image_name, image_config = image_providers[0]
        services.image = ImageProvider(image_name, image_config, http_client=http_client)

        fallback_image = config.get_fallback_image_provider()
        if fallback_image and fallback_image[0] != image_name:
            services.fallback_image = ImageProvider(*fallback_image, http_client=http_client)

    _logger.info(
        f"PROVIDERS | text:{name} | fallback_text:{fallback_text[0] if services.fallback_text else None} | "
        f"image:{services.image.provider_name if services.image else None} | "
        f"fallback_image:{services.fallback_image.provider_name if services.fallback_image else None}"
    )
    return services
