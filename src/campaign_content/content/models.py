"""Data models for campaign content generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..constants import ContentType, ErrorKind, Platform, RecoveryAction, RunStatus
from ..providers.interfaces import ImageResult


class BrandGuideline(BaseModel):
    """Brand voice used to steer every prompt of a campaign."""

    name: str
    voice: str = "professional"
    target_audience: str = ""
    values: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)

    def describe(self) -> str:
        """One-paragraph summary suitable for a prompt."""
        parts = [f"Brand: {self.name}", f"Voice: {self.voice}"]
        if self.target_audience:
            parts.append(f"Audience: {self.target_audience}")
        if self.values:
            parts.append(f"Values: {', '.join(self.values)}")
        return ". ".join(parts)


class MediaAsset(BaseModel):
    """Candidate brand asset an image can be anchored on."""

    model_config = ConfigDict(frozen=True)

    id: str
    url: str
    mime_type: str
    width: int = 0
    height: int = 0

    @property
    def asset_type(self) -> Literal["image", "video", "other"]:
        if self.mime_type.startswith("image/"):
            return "image"
        if self.mime_type.startswith("video/"):
            return "video"
        return "other"

    @property
    def pixel_area(self) -> int:
        return self.width * self.height


class TemplateTextArea(BaseModel):
    """Named text slot of a template with a hard character cap."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    max_characters: int = Field(ge=4)


class TemplateDefinition(BaseModel):
    """Visual template a publication can be rendered through."""

    id: str
    name: str
    template_type: Literal["single", "carousel"] = "single"
    url: str | None = None
    text_areas: list[TemplateTextArea] | None = None
    """Explicit areas; inferred from type and name when omitted."""


class ContentPlanItem(BaseModel):
    """One scheduled unit of content, immutable once generation starts."""

    model_config = ConfigDict(frozen=True)

    id: str
    campaign_id: str
    platform: Platform
    content_type: ContentType
    description: str
    scheduled_at: datetime | None = None
    template_id: str | None = None
    asset_ids: list[str] = Field(default_factory=list)


# =============================================================================
# Generation outputs
# =============================================================================

class CarouselSlide(BaseModel):
    """One ordered slide of a carousel publication."""

    model_config = ConfigDict(frozen=True)

    index: int
    topic: str
    texts: dict[str, str] = Field(default_factory=dict)
    asset_id: str | None = None
    image: ImageResult | None = None


class PublicationPayload(BaseModel):
    """Content handed to the publication store."""

    model_config = ConfigDict(frozen=True)

    text: str
    image_urls: list[str] = Field(default_factory=list)
    template_texts: dict[str, str] = Field(default_factory=dict)
    slides: list[CarouselSlide] = Field(default_factory=list)
    background_url: str | None = None


class GenerationMetadata(BaseModel):
    """Audit trail of one strategy invocation."""

    model_config = ConfigDict(frozen=True)

    strategy: ContentType
    prompts: list[str] = Field(default_factory=list)
    template_id: str | None = None
    asset_ids: list[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=datetime.now)
    retry_count: int = 0
    processing_time: float = 0.0
    recovery_action: RecoveryAction | None = None
    topics_source: Literal["parsed", "fallback"] | None = None


class GenerationResult(BaseModel):
    """Outcome of one strategy invocation.

    ``retry_count`` counts attempts beyond the first across every external
    call the strategy made.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    item_id: str
    content_type: ContentType
    payload: PublicationPayload | None = None
    retry_count: int = 0
    generation_time: float = 0.0
    error: str | None = None
    error_kind: ErrorKind | None = None
    error_code: str | None = None
    metadata: GenerationMetadata | None = None


class GenerationErrorRecord(BaseModel):
    """A failed item as recorded in the run's progress."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    error_kind: ErrorKind
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)
    retry_count: int = 0
    recovery_action: RecoveryAction | None = None


class GenerationProgress(BaseModel):
    """Live snapshot of one campaign run.

    Snapshots are immutable; the tracker replaces them on every change so a
    polling reader never observes a half-applied update.
    """

    model_config = ConfigDict(frozen=True)

    campaign_id: str
    status: RunStatus = RunStatus.GENERATING
    total_items: int = 0
    completed_items: int = 0
    current_item_id: str | None = None
    current_step: str | None = None
    errors: tuple[GenerationErrorRecord, ...] = ()
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = None
    estimated_seconds_remaining: float | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def percentage(self) -> float:
        if self.total_items == 0:
            return 100.0 if self.is_terminal else 0.0
        return round(self.completed_items / self.total_items * 100, 1)

    @property
    def failed_item_ids(self) -> list[str]:
        return [error.item_id for error in self.errors]


# =============================================================================
# Per-invocation context
# =============================================================================

@dataclass
class GenerationContext:
    """Everything one strategy invocation needs; discarded afterwards."""
    item: ContentPlanItem
    brand: BrandGuideline
    assets: tuple[MediaAsset, ...] = ()
    template: TemplateDefinition | None = None
    extra_instructions: list[str] = field(default_factory=list)

    @property
    def platform(self) -> Platform:
        return self.item.platform

    def describe(self) -> dict[str, Any]:
        return {
            "item": self.item.id,
            "type": self.item.content_type.value,
            "platform": self.item.platform.value,
            "assets": len(self.assets),
            "template": self.template.id if self.template else None,
        }
