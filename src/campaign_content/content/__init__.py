"""Campaign content generation.

Architecture:
- GenerationOrchestrator: walks a campaign's content plan, one item at a time
- StrategyFactory / ContentGenerator: one strategy per content type
- analysis, text_areas, responses: pure heuristics and response parsing
- models: plan items, contexts, results and progress snapshots

Dependency direction: orchestrator -> strategies -> services/providers.
Strategies never see the orchestrator, and services never import strategies.
"""

from .models import (
    BrandGuideline,
    CarouselSlide,
    ContentPlanItem,
    GenerationContext,
    GenerationErrorRecord,
    GenerationMetadata,
    GenerationProgress,
    GenerationResult,
    MediaAsset,
    PublicationPayload,
    TemplateDefinition,
    TemplateTextArea,
)
from .orchestrator import GenerationOrchestrator
from .strategies import (
    CarouselGenerator,
    ContentGenerator,
    StrategyConfig,
    StrategyFactory,
    TextImageGenerator,
    TextOnlyGenerator,
    TextTemplateGenerator,
)
from .text_areas import NameHeuristicTextAreaInferer, TextAreaInferer

__all__ = [
    # Main classes
    "GenerationOrchestrator",
    "StrategyFactory",
    "StrategyConfig",
    # Strategies
    "ContentGenerator",
    "TextOnlyGenerator",
    "TextImageGenerator",
    "TextTemplateGenerator",
    "CarouselGenerator",
    # Text areas
    "TextAreaInferer",
    "NameHeuristicTextAreaInferer",
    # Models
    "BrandGuideline",
    "CarouselSlide",
    "ContentPlanItem",
    "GenerationContext",
    "GenerationErrorRecord",
    "GenerationMetadata",
    "GenerationProgress",
    "GenerationResult",
    "MediaAsset",
    "PublicationPayload",
    "TemplateDefinition",
    "TemplateTextArea",
]
