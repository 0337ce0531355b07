"""Integration tests for the complete generation flow.

Runs the shipped example plan through the real orchestrator, strategies,
progress tracker, publication store and ImageProvider. Only the external
services are faked: text answers come from a scripted service and fal.ai
is served by httpx.MockTransport.
"""

from __future__ import annotations

import json
from io import BytesIO
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from PIL import Image

from campaign_content.cli.parsers import load_plan
from campaign_content.constants import ContentType, ErrorKind, RunStatus
from campaign_content.content import GenerationOrchestrator, GenerationProgress
from campaign_content.providers.config import ImageProviderConfig
from campaign_content.providers.image import ImageProvider
from campaign_content.services import JsonPublicationStore, ProgressTracker

EXAMPLE_PLAN = Path(__file__).parent.parent.parent / "config" / "example_plan.yaml"

pytestmark = pytest.mark.integration


class ScriptedTextService:
    """Text backend answering by request shape, like a well-behaved model."""

    def __init__(self):
        self.briefs: list[str] = []

    async def generate_text(self, brief, brand_voice, platform, character_limit):
        self.briefs.append(brief)
        return f"Casa Verde on {platform.value}: fresh organic baskets all summer long! #organic"

    async def generate_structured_text(self, brief, schema_hint):
        self.briefs.append(brief)
        hint = json.loads(schema_hint)
        if "slides" in hint:
            return json.dumps({"slides": [f"Tip {k}" for k in range(1, len(hint["slides"]) + 1)]})
        return "```json\n" + json.dumps({"texts": {"headline": "Summer Sale", "cta": "Shop now"}}) + "\n```"


class FalServer:
    """Returns a new image URL per generation request and serves a PNG for each."""

    def __init__(self):
        self.generations: list[dict] = []
        buffer = BytesIO()
        Image.new("RGB", (1080, 1080), color=(30, 160, 90)).save(buffer, format="PNG")
        self.png = buffer.getvalue()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            self.generations.append(json.loads(request.content))
            return httpx.Response(200, json={"images": [{"url": f"https://fal.test/{len(self.generations)}.png"}]})
        return httpx.Response(200, content=self.png)


@pytest.fixture
def plan():
    return load_plan(EXAMPLE_PLAN)


@pytest.fixture
def fal_server() -> FalServer:
    return FalServer()


@pytest_asyncio.fixture
async def image_provider(monkeypatch, fal_server):
    monkeypatch.setenv("TEST_FAL_KEY", "fal-secret")
    client = httpx.AsyncClient(transport=httpx.MockTransport(fal_server))
    provider = ImageProvider(
        "fal",
        ImageProviderConfig(priority=1, type="fal", model="fal-ai/nano-banana/edit", api_key_env="TEST_FAL_KEY"),
        http_client=client,
    )
    yield provider
    await client.aclose()


class TestFullGenerationFlow:
    """End-to-end runs of the example plan."""

    @pytest.mark.asyncio
    async def test_example_plan(self, plan, image_provider, fal_server, tmp_path, strategy_config, retry_manager):
        snapshots: list[GenerationProgress] = []

        async def on_progress(progress: GenerationProgress) -> None:
            snapshots.append(progress)

        store = JsonPublicationStore(tmp_path)
        orchestrator = GenerationOrchestrator(
            text_service=ScriptedTextService(),
            publication_store=store,
            image_service=image_provider,
            tracker=ProgressTracker(callback=on_progress),
            retry_manager=retry_manager,
            strategy_config=strategy_config,
        )

        progress = await orchestrator.run_campaign(
            plan.campaign_id, plan.items, plan.brand, plan.assets, plan.templates
        )

        assert progress.status is RunStatus.COMPLETED
        assert progress.completed_items == 4
        assert snapshots[-1].status is RunStatus.COMPLETED
        completed_counts = [snapshot.completed_items for snapshot in snapshots]
        assert completed_counts == sorted(completed_counts)

        saved = store.list_saved(plan.campaign_id)
        assert [path.name for path in saved] == [
            "001-launch-tweet.json",
            "002-launch-post.json",
            "003-promo-banner.json",
            "004-tips.json",
        ]
        documents = [json.loads(path.read_text(encoding="utf-8")) for path in saved]

        tweet, post, banner, carousel = documents
        assert tweet["payload"]["image_urls"] == []
        assert post["metadata"]["asset_ids"] == ["hero"]
        assert post["payload"]["image_urls"] == ["https://fal.test/1.png"]
        assert banner["payload"]["background_url"] == "https://fal.test/2.png"
        assert banner["payload"]["template_texts"]["headline"] == "Summer Sale"

        # LinkedIn allows 5 slides, the plan has 3 compatible assets
        slides = carousel["payload"]["slides"]
        assert [slide["topic"] for slide in slides] == ["Tip 1", "Tip 2", "Tip 3"]
        assert [slide["texts"]["slide_number"] for slide in slides] == ["1/3", "2/3", "3/3"]
        assert carousel["metadata"]["topics_source"] == "parsed"
        assert [slide["asset_id"] for slide in slides] == ["hero", "market", "promo-video"]

        # Every slide after the first references the previous slide's image
        slide_requests = fal_server.generations[-3:]
        assert slide_requests[1]["image_urls"][-1] == slides[0]["image"]["url"]
        assert slide_requests[2]["image_urls"][-1] == slides[1]["image"]["url"]

    @pytest.mark.asyncio
    async def test_image_outage_simplifies(self, plan, tmp_path, strategy_config, retry_manager, monkeypatch):
        monkeypatch.setenv("TEST_FAL_KEY", "fal-secret")

        def outage(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"detail": "maintenance"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(outage))
        image_provider = ImageProvider(
            "fal",
            ImageProviderConfig(priority=1, type="fal", model="fal-ai/flux/dev", api_key_env="TEST_FAL_KEY"),
            http_client=client,
        )
        store = JsonPublicationStore(tmp_path)
        orchestrator = GenerationOrchestrator(
            text_service=ScriptedTextService(),
            publication_store=store,
            image_service=image_provider,
            retry_manager=retry_manager,
            strategy_config=strategy_config,
        )

        items = [item for item in plan.items if item.content_type is ContentType.TEXT_IMAGE]
        progress = await orchestrator.run_campaign(plan.campaign_id, items, plan.brand, plan.assets)
        await client.aclose()

        assert progress.status is RunStatus.COMPLETED
        document = json.loads(store.list_saved(plan.campaign_id)[0].read_text(encoding="utf-8"))
        assert document["content_type"] == "text_only"
        assert document["metadata"]["recovery_action"] == "simplified_generation"

    @pytest.mark.asyncio
    async def test_text_outage_fails_run(self, plan, tmp_path, strategy_config, retry_manager, mock_image_service):
        class DownTextService(ScriptedTextService):
            async def generate_text(self, *args):
                raise httpx.ConnectError("connection refused")

        store = JsonPublicationStore(tmp_path)
        orchestrator = GenerationOrchestrator(
            text_service=DownTextService(),
            publication_store=store,
            image_service=mock_image_service,
            retry_manager=retry_manager,
            strategy_config=strategy_config,
        )

        progress = await orchestrator.run_campaign(
            plan.campaign_id, plan.items, plan.brand, plan.assets, plan.templates
        )

        assert progress.status is RunStatus.FAILED
        assert progress.failed_item_ids == [item.id for item in plan.items]
        assert {error.error_kind for error in progress.errors} == {ErrorKind.NETWORK_ERROR}
        assert store.list_saved(plan.campaign_id) == []
        mock_image_service.generate_image.assert_not_awaited()
