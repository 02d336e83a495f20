"""Gemini API vision backend for ingredient detection."""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import (
    CookingProgress,
    Detection,
    VisionBackend,
    VisionConfigError,
    VisionError,
    parse_detections,
    parse_progress,
)

if TYPE_CHECKING:
    from ..camera import Frame

_DETECT_PROMPT = """\
This image shows food in a kitchen or fridge.
List every ingredient you can see.

Reply with JSON only, in this format:
[
  {"name": "ingredient name", "quantity": "estimated amount", "confidence": 0.0-1.0}
]

Use confidence 0.8-1.0 when the ingredient is clearly visible,
0.5-0.8 when somewhat uncertain, and below 0.5 when barely visible.
"""

_PROGRESS_PROMPT = """\
You are watching someone cook. The current recipe step is:

{step}

Look at the image and decide whether this step is finished.
Reply with JSON only, in this format:
{{"is_complete": true or false, "confidence": 0.0-1.0, "feedback": "one short sentence"}}
"""


class GeminiVisionBackend(VisionBackend):
    """Detect ingredients using Google Gemini's vision capability."""

    def __init__(self, api_key: str = "", model: str = "gemini-2.0-flash") -> None:
        self._api_key = api_key
        self._model = model

    def check_configured(self) -> None:
        if not self._api_key:
            raise VisionConfigError(
                "Gemini API key is not configured. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )
        _import_genai()

    async def detect_ingredients(self, frame: Frame) -> list[Detection]:
        self.check_configured()
        text = await self._generate(
            [{"mime_type": frame.mime_type, "data": frame.data}, _DETECT_PROMPT]
        )
        return parse_detections(text)

    async def analyze_cooking_progress(
        self, frame: Frame, step: str
    ) -> CookingProgress:
        self.check_configured()
        text = await self._generate(
            [
                {"mime_type": frame.mime_type, "data": frame.data},
                _PROGRESS_PROMPT.format(step=step),
            ]
        )
        return parse_progress(text)

    async def _generate(self, parts: list) -> str:
        genai = _import_genai()
        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)
        try:
            response = await model.generate_content_async(parts)
            return response.text
        except Exception as e:
            raise VisionError(f"Gemini request failed: {e}") from e


def _import_genai():
    try:
        import google.generativeai as genai
    except ImportError:
        raise ImportError(
            "google-generativeai SDK is required: pip install google-generativeai"
        ) from None
    return genai
