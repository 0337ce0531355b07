"""Text generation provider using Agno framework.

One TextProvider is bound to one configured provider. Failures are not
retried or swapped here: they propagate to the RetryManager, which
classifies them, and the orchestrator owns fallback to another backend.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from ..constants import Platform
from .config import TextProviderConfig

_logger = logging.getLogger("ai_calls")


def _create_agno_model(provider_name: str, provider_config: TextProviderConfig) -> Any:
    """Create an Agno model instance for the given provider.

    Agno provides unified interfaces for all major providers.
    """
    model_id = provider_config.model_id
    api_key = provider_config.get_api_key()
    base_url = provider_config.get_base_url()

    # Import Agno models lazily; each provider pulls its own SDK
    if provider_name == "lmstudio":
        from agno.models.lmstudio import LMStudio
        return LMStudio(
            id=model_id,
            base_url=base_url or "http://localhost:1234/v1",
        )

    elif provider_name == "ollama":
        from agno.models.ollama import Ollama
        return Ollama(
            id=model_id,
            host=base_url or "http://localhost:11434",
        )

    elif provider_name == "openai":
        from agno.models.openai import OpenAIChat
        return OpenAIChat(
            id=model_id,
            api_key=api_key,
        )

    elif provider_name == "groq":
        from agno.models.groq import Groq
        return Groq(
            id=model_id,
            api_key=api_key,
        )

    elif provider_name == "anthropic":
        from agno.models.anthropic import Claude
        return Claude(
            id=model_id,
            api_key=api_key,
        )

    elif provider_name == "gemini":
        from agno.models.google import Gemini
        return Gemini(
            id=model_id,
            api_key=api_key,
        )

    else:
        # Fallback to OpenAI-like for unknown providers
        from agno.models.openai.like import OpenAILike
        return OpenAILike(
            id=model_id,
            api_key=api_key,
            base_url=base_url,
        )


class TextProvider:
    """Text generation backend implementing TextGenerationService.

    Usage:
        provider = TextProvider("openai", config.text_providers["openai"])
        caption = await provider.generate_text(brief, "friendly", Platform.INSTAGRAM, 2200)
        raw_json = await provider.generate_structured_text(brief, '{"slides": [...]}')
    """

    def __init__(self, provider_name: str, provider_config: TextProviderConfig):
        """Initialize the text provider.

        Args:
            provider_name: Key of the provider in the configuration (selects the Agno model).
            provider_config: Provider settings.
        """
        self.provider_name = provider_name
        self.config = provider_config
        self._total_calls = 0

    async def _run(self, prompt: str, instructions: str, task: str) -> str:
        from agno.agent import Agent

        model = _create_agno_model(self.provider_name, self.config)
        model_id = getattr(model, "id", None) or self.config.model_id

        _logger.info(
            f"AI_REQUEST | provider:{self.provider_name} | model:{model_id} | task:{task}\n"
            f"--- SYSTEM ---\n{instructions}\n"
            f"--- PROMPT ---\n{prompt}\n"
            f"--- END REQUEST ---"
        )

        start_time = time.time()
        agent = Agent(
            model=model,
            instructions=instructions,
            markdown=False,
        )
        response = await asyncio.wait_for(agent.arun(prompt), timeout=self.config.timeout)
        result = response.content or ""

        # Reasoning models may leave content empty
        if not result and getattr(response, "reasoning_content", None):
            result = response.reasoning_content

        duration = time.time() - start_time
        self._total_calls += 1

        _logger.info(
            f"AI_RESPONSE | provider:{self.provider_name} | model:{model_id} | "
            f"task:{task} | duration:{duration:.2f}s\n"
            f"--- RESPONSE ---\n{result}\n"
            f"--- END RESPONSE ---"
        )
        return str(result)

    async def generate_text(
        self,
        brief: str,
        brand_voice: str,
        platform: Platform,
        character_limit: int,
    ) -> str:
        """Generate a publication caption.

        Args:
            brief: Content brief built by the strategy.
            brand_voice: Voice to write in.
            platform: Target network.
            character_limit: Hard maximum length of the answer.

        Returns:
            Caption text.
        """
        instructions = (
            f"You write social media posts for {platform.value}. "
            f"Write in a {brand_voice} voice. "
            f"Never exceed {character_limit} characters. "
            "Answer with the post text only."
        )
        return await self._run(brief, instructions, task="generate_text")

    async def generate_structured_text(self, brief: str, schema_hint: str) -> str:
        """Generate JSON text following ``schema_hint``.

        Returns:
            The raw model answer. Callers validate and fall back themselves.
        """
        instructions = (
            "Respond with a single JSON object and nothing else. "
            f"It must follow this shape: {schema_hint}"
        )
        return await self._run(brief, instructions, task="generate_structured_text")

    @property
    def total_calls(self) -> int:
        return self._total_calls
