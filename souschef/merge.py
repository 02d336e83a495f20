"""Merge repeated per-frame detections into one ranked ingredient list.

The same physical item is usually reported many times while the camera
moves, with a confidence that rises and falls with framing and lighting.
A merge session keeps the best observation per ingredient name and emits
a confidence-filtered, confidence-sorted view on request.

Names are matched after collapsing whitespace and case-folding, so
"Tomato", " tomato " and "TOMATO" are one item. Items with equal confidence
keep the order in which their names were first seen.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from .models import Ingredient

if TYPE_CHECKING:
    from .vision import Detection


def name_key(name: str) -> str:
    """Key used to decide whether two detections name the same item."""
    return " ".join(name.split()).casefold()


def rank(items: Iterable[Ingredient], min_confidence: float) -> list[Ingredient]:
    """Keep items at or above ``min_confidence``, highest confidence first.

    The sort is stable, so ties keep their input order.
    """
    return sorted(
        (i for i in items if i.confidence >= min_confidence),
        key=lambda i: i.confidence,
        reverse=True,
    )


class MergeSession:
    """Accumulation state for one scan.

    Not thread-safe: batches must be fed one at a time by a single owner.
    """

    def __init__(self, cap: int = 50, min_confidence: float = 0.5) -> None:
        self.cap = cap
        self.min_confidence = min_confidence
        self._accumulated: dict[str, Ingredient] = {}

    def __len__(self) -> int:
        return len(self._accumulated)

    @property
    def accumulated(self) -> dict[str, Ingredient]:
        """Every item seen so far, including those below the floor."""
        return dict(self._accumulated)

    def feed(self, batch: Iterable[Detection]) -> None:
        """Fold one frame's detections into the session.

        A new name is inserted with a fresh id. A known name is replaced
        only by a strictly more confident detection, and keeps its id.
        """
        for detection in batch:
            key = name_key(detection.name)
            existing = self._accumulated.get(key)
            if existing is None:
                self._accumulated[key] = _materialize(detection)
            elif detection.confidence > existing.confidence:
                self._accumulated[key] = _materialize(detection, existing.id)

    def snapshot(self) -> list[Ingredient]:
        """Items at or above the confidence floor, most confident first."""
        return rank(self._accumulated.values(), self.min_confidence)

    def is_saturated(self) -> bool:
        # Advisory: checked between batches, a single batch may overshoot.
        return len(self._accumulated) >= self.cap

    def reset(self) -> None:
        self._accumulated.clear()


def _materialize(detection: Detection, item_id: str | None = None) -> Ingredient:
    ingredient = Ingredient(
        name=detection.name.strip(),
        estimated_quantity=detection.quantity,
        confidence=detection.confidence,
    )
    if item_id is not None:
        ingredient.id = item_id
    return ingredient
