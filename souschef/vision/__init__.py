"""Vision backend base class, data types, and factory."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..camera import Frame
    from ..config import SousChefConfig


@dataclass
class Detection:
    """One ingredient guess reported for a single frame."""

    name: str
    quantity: str = "Unknown"
    confidence: float = 0.0  # 0.0〜1.0


@dataclass
class CookingProgress:
    is_complete: bool
    confidence: float
    feedback: str


class VisionError(RuntimeError):
    """A detector call failed (network, HTTP status, undecodable reply)."""


class VisionConfigError(ValueError):
    """The backend cannot run at all, e.g. its API key is missing."""


class VisionBackend(ABC):
    """Abstract base for ingredient detection from camera frames."""

    def check_configured(self) -> None:
        """Fail fast if the backend cannot be used.

        Raises:
            VisionConfigError: If credentials are missing.
            ImportError: If the vendor SDK is not installed.
        """

    @abstractmethod
    async def detect_ingredients(self, frame: Frame) -> list[Detection]:
        """Detect ingredients in one frame.

        The result may repeat a name; merging is the caller's job.
        """
        ...

    @abstractmethod
    async def analyze_cooking_progress(
        self, frame: Frame, step: str
    ) -> CookingProgress:
        """Judge whether the cooking step shown in the frame is done."""
        ...


def create_backend(config: SousChefConfig) -> VisionBackend:
    """Create a vision backend based on configuration."""
    backend_name = config.vision.backend

    match backend_name:
        case "overshoot":
            from .overshoot import OvershootVisionBackend

            return OvershootVisionBackend(
                api_key=config.vision.overshoot.api_key,
                url=config.vision.overshoot.url,
                timeout=config.vision.overshoot.timeout,
            )
        case "gemini":
            from .gemini import GeminiVisionBackend

            return GeminiVisionBackend(
                api_key=config.vision.gemini.api_key,
                model=config.vision.gemini.model,
            )
        case "claude":
            from .claude import ClaudeVisionBackend

            return ClaudeVisionBackend(
                api_key=config.vision.claude.api_key,
                model=config.vision.claude.model,
            )
        case _:
            raise ValueError(
                f"Unknown vision backend: {backend_name!r} "
                f"(choose overshoot / gemini / claude)"
            )


def strip_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence from a model reply."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return cleaned


def parse_detections(payload: str | dict | list) -> list[Detection]:
    """Turn a detector reply into Detection objects.

    Accepts a JSON array, or an object holding the array under
    ``detections`` or ``ingredients``. Labels may be given as ``label`` or
    ``name``.

    Raises:
        VisionError: If the payload cannot be decoded.
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(strip_fences(payload))
        except json.JSONDecodeError as e:
            raise VisionError(f"Failed to decode detector response: {e}") from e

    if isinstance(payload, dict):
        items = payload.get("detections")
        if items is None:
            items = payload.get("ingredients")
        if items is None:
            return []
    else:
        items = payload

    if not isinstance(items, list):
        raise VisionError("Detector response is not a list of detections")

    detections: list[Detection] = []
    try:
        for item in items:
            name = item.get("label") or item.get("name")
            if not name:
                continue
            detections.append(
                Detection(
                    name=str(name),
                    quantity=str(item.get("quantity") or "Unknown"),
                    confidence=float(item["confidence"]),
                )
            )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise VisionError(f"Malformed detection in response: {e}") from e
    return detections


def parse_progress(payload: str | dict) -> CookingProgress:
    """Turn a cooking-analysis reply into a CookingProgress."""
    if isinstance(payload, str):
        try:
            payload = json.loads(strip_fences(payload))
        except json.JSONDecodeError as e:
            raise VisionError(f"Failed to decode progress response: {e}") from e
    if not isinstance(payload, dict):
        raise VisionError("Progress response is not an object")

    is_complete = payload.get("is_complete", payload.get("isComplete", False))
    try:
        confidence = float(payload.get("confidence") or 0.0)
    except (TypeError, ValueError) as e:
        raise VisionError(f"Malformed confidence in response: {e}") from e
    return CookingProgress(
        is_complete=bool(is_complete),
        confidence=confidence,
        feedback=payload.get("feedback") or "Processing...",
    )
