"""Template text-area inference.

A template declares its named text slots explicitly, or they are inferred
from its type and name. The inference policy is injectable so tenants can
bring their own rules; ``NameHeuristicTextAreaInferer`` is the default.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import TemplateDefinition, TemplateTextArea

ELLIPSIS = "..."

SINGLE_AREAS: tuple[TemplateTextArea, ...] = (
    TemplateTextArea(id="headline", label="Headline", max_characters=50),
    TemplateTextArea(id="subtitle", label="Subtitle", max_characters=80),
    TemplateTextArea(id="cta", label="Call to action", max_characters=25),
)

CAROUSEL_AREAS: tuple[TemplateTextArea, ...] = (
    TemplateTextArea(id="slide_number", label="Slide number", max_characters=10),
    TemplateTextArea(id="slide_title", label="Slide title", max_characters=40),
    TemplateTextArea(id="slide_content", label="Slide content", max_characters=80),
    TemplateTextArea(id="progress_indicator", label="Progress", max_characters=20),
)

DISCOUNT_AREA = TemplateTextArea(id="discount", label="Discount", max_characters=15)
DATE_AREA = TemplateTextArea(id="date", label="Date", max_characters=20)

PROMO_MARKERS: tuple[str, ...] = ("promo", "promocion", "promoción", "oferta", "offer", "sale")
EVENT_MARKERS: tuple[str, ...] = ("event", "evento", "date", "fecha")


@runtime_checkable
class TextAreaInferer(Protocol):
    """Policy deciding which text areas a template exposes."""

    def infer(self, template: TemplateDefinition) -> list[TemplateTextArea]: ...


class NameHeuristicTextAreaInferer:
    """Areas from template type, plus extras triggered by words in its name."""

    def __init__(
        self,
        promo_markers: tuple[str, ...] = PROMO_MARKERS,
        event_markers: tuple[str, ...] = EVENT_MARKERS,
    ):
        self.promo_markers = promo_markers
        self.event_markers = event_markers

    def infer(self, template: TemplateDefinition) -> list[TemplateTextArea]:
        if template.text_areas:
            return list(template.text_areas)

        base = CAROUSEL_AREAS if template.template_type == "carousel" else SINGLE_AREAS
        areas = list(base)

        name = template.name.lower()
        if any(marker in name for marker in self.promo_markers):
            areas.append(DISCOUNT_AREA)
        if any(marker in name for marker in self.event_markers):
            areas.append(DATE_AREA)
        return areas


def truncate_to_cap(text: str, cap: int) -> str:
    """Hard-truncate with an ellipsis so the result is at most ``cap`` characters."""
    if len(text) <= cap:
        return text
    return text[: max(cap - len(ELLIPSIS), 0)] + ELLIPSIS


def fit_area_texts(
    texts: dict[str, str],
    areas: list[TemplateTextArea],
) -> dict[str, str]:
    """Keep one entry per area, each cut down to its cap.

    Areas missing from ``texts`` get an empty string.
    """
    return {area.id: truncate_to_cap(str(texts.get(area.id, "")).strip(), area.max_characters) for area in areas}
