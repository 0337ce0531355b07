"""Tests for the Agno-based TextProvider.

Tests cover:
- Model creation per provider name
- Caption and structured generation through a mocked Agno Agent
- Timeouts and provider errors propagating unchanged
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from campaign_content.constants import ErrorKind, Platform
from campaign_content.providers.config import TextProviderConfig
from campaign_content.providers.interfaces import TextGenerationService
from campaign_content.providers.text import TextProvider, _create_agno_model
from campaign_content.services.errors import normalize_error


@pytest.fixture
def openai_config() -> TextProviderConfig:
    return TextProviderConfig(priority=1, model="openai/gpt-4o-mini", api_key="test-key", timeout=5)


def _agent_returning(content: str | None, reasoning: str | None = None) -> MagicMock:
    response = MagicMock()
    response.content = content
    response.reasoning_content = reasoning
    agent = MagicMock()
    agent.arun = AsyncMock(return_value=response)
    return agent


# =============================================================================
# Model creation
# =============================================================================

class TestCreateAgnoModel:
    """Tests for _create_agno_model()."""

    def test_openai(self, openai_config):
        from agno.models.openai import OpenAIChat

        model = _create_agno_model("openai", openai_config)

        assert isinstance(model, OpenAIChat)
        assert model.id == "gpt-4o-mini"

    def test_lmstudio_default_url(self):
        from agno.models.lmstudio import LMStudio

        config = TextProviderConfig(priority=1, model="lmstudio/local-model")
        model = _create_agno_model("lmstudio", config)

        assert isinstance(model, LMStudio)
        assert model.base_url == "http://localhost:1234/v1"

    def test_unknown_provider_is_openai_like(self):
        from agno.models.openai.like import OpenAILike

        config = TextProviderConfig(
            priority=1, model="together/mixtral", api_key="k", base_url="https://api.together.test/v1"
        )
        model = _create_agno_model("together", config)

        assert isinstance(model, OpenAILike)
        assert model.id == "mixtral"
        assert model.base_url == "https://api.together.test/v1"


# =============================================================================
# Generation
# =============================================================================

class TestTextProvider:
    """Tests for TextProvider generation calls."""

    def test_satisfies_protocol(self, openai_config):
        assert isinstance(TextProvider("openai", openai_config), TextGenerationService)

    @pytest.mark.asyncio
    async def test_generate_text(self, openai_config):
        agent = _agent_returning("Summer is here!")
        provider = TextProvider("openai", openai_config)

        with patch("campaign_content.providers.text._create_agno_model", return_value=MagicMock(id="gpt-4o-mini")), \
             patch("agno.agent.Agent", return_value=agent) as agent_cls:
            text = await provider.generate_text("Write about summer", "playful", Platform.TWITTER, 280)

        assert text == "Summer is here!"
        agent.arun.assert_awaited_once_with("Write about summer")
        instructions = agent_cls.call_args.kwargs["instructions"]
        assert "twitter" in instructions
        assert "playful" in instructions
        assert "280" in instructions
        assert provider.total_calls == 1

    @pytest.mark.asyncio
    async def test_generate_structured_text(self, openai_config):
        agent = _agent_returning('{"slides": ["a"]}')
        provider = TextProvider("openai", openai_config)

        with patch("campaign_content.providers.text._create_agno_model", return_value=MagicMock(id="m")), \
             patch("agno.agent.Agent", return_value=agent) as agent_cls:
            raw = await provider.generate_structured_text("Plan slides", '{"slides": ["..."]}')

        assert raw == '{"slides": ["a"]}'
        assert '{"slides": ["..."]}' in agent_cls.call_args.kwargs["instructions"]

    @pytest.mark.asyncio
    async def test_reasoning_content_used_when_content_empty(self, openai_config):
        agent = _agent_returning("", reasoning="Thought-through answer")
        provider = TextProvider("openai", openai_config)

        with patch("campaign_content.providers.text._create_agno_model", return_value=MagicMock(id="m")), \
             patch("agno.agent.Agent", return_value=agent):
            text = await provider.generate_text("b", "v", Platform.INSTAGRAM, 2200)

        assert text == "Thought-through answer"

    @pytest.mark.asyncio
    async def test_provider_errors_propagate(self, openai_config):
        class RateLimitError(Exception):
            status_code = 429

        agent = MagicMock()
        agent.arun = AsyncMock(side_effect=RateLimitError("Too many requests"))
        provider = TextProvider("openai", openai_config)

        with patch("campaign_content.providers.text._create_agno_model", return_value=MagicMock(id="m")), \
             patch("agno.agent.Agent", return_value=agent):
            with pytest.raises(RateLimitError) as exc_info:
                await provider.generate_text("b", "v", Platform.INSTAGRAM, 2200)

        assert normalize_error(exc_info.value).kind is ErrorKind.RATE_LIMIT_ERROR
        assert provider.total_calls == 0

    @pytest.mark.asyncio
    async def test_timeout(self):
        config = TextProviderConfig(priority=1, model="openai/gpt-4o-mini", api_key="k", timeout=0)

        async def _never(prompt):
            await asyncio.sleep(10)

        agent = MagicMock()
        agent.arun = _never
        provider = TextProvider("openai", config)

        with patch("campaign_content.providers.text._create_agno_model", return_value=MagicMock(id="m")), \
             patch("agno.agent.Agent", return_value=agent):
            with pytest.raises(asyncio.TimeoutError) as exc_info:
                await provider.generate_text("b", "v", Platform.INSTAGRAM, 2200)

        assert normalize_error(exc_info.value).kind is ErrorKind.TIMEOUT_ERROR
