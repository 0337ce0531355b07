"""Parsing of structured AI responses.

Providers return raw strings for structured requests. Everything that
comes back is validated here against pydantic models; when validation fails
the caller gets an explicit fallback branch rather than a partially trusted
payload.

    parse_slide_topics(raw, expected=3, description=...)
        -> ParsedTopics(topics=[...])         model returned exactly 3 topics
        -> FallbackTopics(topics=[...], reason="wrong_count")
"""

from __future__ import annotations

import json
import re
from typing import Literal, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class SlideTopicsResponse(BaseModel):
    """Expected shape of a carousel topic planning answer."""

    slides: list[str] = Field(min_length=1)

    @field_validator("slides")
    @classmethod
    def _strip_topics(cls, value: list[str]) -> list[str]:
        topics = [topic.strip() for topic in value]
        if any(not topic for topic in topics):
            raise ValueError("empty topic")
        return topics


class TemplateTextsResponse(BaseModel):
    """Expected shape of a batched template-area answer: area id -> text."""

    texts: dict[str, str]


class ParsedTopics(BaseModel):
    """Topics taken verbatim from the model's answer."""

    source: Literal["parsed"] = "parsed"
    topics: list[str]


class FallbackTopics(BaseModel):
    """Mechanically generated topics used when the answer was unusable."""

    source: Literal["fallback"] = "fallback"
    topics: list[str]
    reason: Literal["invalid_json", "invalid_shape", "wrong_count", "request_failed"]


SlideTopics = Union[ParsedTopics, FallbackTopics]


def extract_json_object(raw: str) -> dict | None:
    """Best-effort extraction of one JSON object from a model answer.

    Handles bare JSON, fenced ```json blocks and prose around an object.
    """
    if not raw:
        return None

    candidates = [raw.strip()]
    fenced = _FENCE_RE.search(raw)
    if fenced:
        candidates.append(fenced.group(1).strip())
    braces = _OBJECT_RE.search(raw)
    if braces:
        candidates.append(braces.group(0))

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    return None


def fallback_topics(
    expected: int,
    description: str,
    reason: Literal["invalid_json", "invalid_shape", "wrong_count", "request_failed"],
) -> FallbackTopics:
    topics = [f"Slide {k}: {description} - Part {k}" for k in range(1, expected + 1)]
    return FallbackTopics(topics=topics, reason=reason)


def parse_slide_topics(raw: str, expected: int, description: str) -> SlideTopics:
    """Validate a topic planning answer, falling back when it is unusable."""
    data = extract_json_object(raw)
    if data is None:
        return fallback_topics(expected, description, "invalid_json")

    try:
        response = SlideTopicsResponse.model_validate(data)
    except ValidationError:
        return fallback_topics(expected, description, "invalid_shape")

    if len(response.slides) != expected:
        return fallback_topics(expected, description, "wrong_count")

    return ParsedTopics(topics=response.slides)


def parse_template_texts(raw: str) -> dict[str, str]:
    """Area texts from a batched answer; empty when the answer is unusable.

    Accepts ``{"texts": {...}}`` or a flat ``{area_id: text}`` object.
    """
    data = extract_json_object(raw)
    if data is None:
        return {}

    try:
        return TemplateTextsResponse.model_validate(data).texts
    except ValidationError:
        pass

    return {str(key): str(value) for key, value in data.items() if isinstance(value, (str, int, float))}
