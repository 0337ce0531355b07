"""Output service for saving generated publications.

Implements the PublicationStore contract on the local filesystem: one JSON
document per publication under ``{base}/{campaign_id}/``.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from ..content.models import GenerationResult

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_name(value: str) -> str:
    return _UNSAFE_CHARS.sub("-", value).strip("-") or "unnamed"


class JsonPublicationStore:
    """Writes finished publications to disk.

    Responsibilities:
    - Generating output paths
    - Saving the publication document
    - Saving the caption as plain text for copy/paste

    Usage:
        store = JsonPublicationStore(Path("output"))
        path = await store.save("summer-sale", result)
    """

    def __init__(self, base_path: Path, output_config: dict[str, Any] | None = None):
        """Initialize the store.

        Args:
            base_path: Root directory for all campaigns.
            output_config: Optional naming overrides (``file_naming``).
        """
        self.base_path = Path(base_path)
        self.output_config = output_config or {}
        self._sequence: dict[str, int] = {}

    def get_output_path(self, campaign_id: str) -> Path:
        return self.base_path / _safe_name(campaign_id)

    async def save(self, campaign_id: str, result: "GenerationResult") -> Path:
        """Persist one publication.

        Args:
            campaign_id: Campaign the publication belongs to.
            result: Successful generation result.

        Returns:
            Path to the saved JSON document.
        """
        if not result.success or result.payload is None:
            raise ValueError(f"Refusing to persist failed result for item {result.item_id}")

        output_path = self.get_output_path(campaign_id)
        output_path.mkdir(parents=True, exist_ok=True)

        position = self._sequence.get(campaign_id, 0) + 1
        self._sequence[campaign_id] = position

        file_naming = self.output_config.get("file_naming", {})
        stem = file_naming.get("publication", "{position:03d}-{item_id}").format(
            position=position,
            item_id=_safe_name(result.item_id),
        )

        document = {
            "campaign_id": campaign_id,
            "position": position,
            **result.model_dump(mode="json"),
        }
        json_path = output_path / f"{stem}.json"
        json_path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")

        # Caption only, ready to paste
        (output_path / f"{stem}.txt").write_text(result.payload.text.strip(), encoding="utf-8")

        return json_path

    def list_saved(self, campaign_id: str) -> list[Path]:
        """Saved publication documents for a campaign, in plan order."""
        output_path = self.get_output_path(campaign_id)
        if not output_path.exists():
            return []
        return sorted(output_path.glob("*.json"))
