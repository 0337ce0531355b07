"""Pure parsing functions for plan files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from ..content.models import BrandGuideline, ContentPlanItem, MediaAsset, TemplateDefinition


class CampaignPlan(BaseModel):
    """Contents of a plan YAML file."""

    campaign_id: str
    brand: BrandGuideline
    assets: list[MediaAsset] = Field(default_factory=list)
    templates: list[TemplateDefinition] = Field(default_factory=list)
    items: list[ContentPlanItem] = Field(default_factory=list)


def parse_plan(data: dict[str, Any]) -> CampaignPlan:
    """Build a CampaignPlan from already-loaded YAML data.

    Pure function - no side effects. Items inherit the plan's campaign_id
    unless they set their own.

    Raises:
        ValueError: If the document is not a mapping or misses campaign_id.
        pydantic.ValidationError: If any entry is malformed.
    """
    if not isinstance(data, dict):
        raise ValueError("Plan file must contain a mapping at the top level")
    campaign_id = data.get("campaign_id")
    if not campaign_id:
        raise ValueError("Plan file is missing 'campaign_id'")

    items = [
        {"campaign_id": campaign_id, **item}
        for item in data.get("items") or []
    ]
    return CampaignPlan(**{**data, "items": items})


def load_plan(path: Path) -> CampaignPlan:
    """Read and parse a plan YAML file."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return parse_plan(data)
