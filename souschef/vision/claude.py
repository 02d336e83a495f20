"""Claude API vision backend for ingredient detection."""

from __future__ import annotations

import base64
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
from .gemini import _DETECT_PROMPT, _PROGRESS_PROMPT

if TYPE_CHECKING:
    from ..camera import Frame


class ClaudeVisionBackend(VisionBackend):
    """Detect ingredients using Claude's vision capability."""

    def __init__(
        self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929"
    ) -> None:
        self._api_key = api_key
        self._model = model

    def check_configured(self) -> None:
        if not self._api_key:
            raise VisionConfigError(
                "Anthropic API key is not configured. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )
        _import_anthropic()

    async def detect_ingredients(self, frame: Frame) -> list[Detection]:
        self.check_configured()
        text = await self._ask(frame, _DETECT_PROMPT)
        return parse_detections(text)

    async def analyze_cooking_progress(
        self, frame: Frame, step: str
    ) -> CookingProgress:
        self.check_configured()
        text = await self._ask(frame, _PROGRESS_PROMPT.format(step=step))
        return parse_progress(text)

    async def _ask(self, frame: Frame, prompt: str) -> str:
        anthropic = _import_anthropic()

        content = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": frame.mime_type,
                    "data": base64.standard_b64encode(frame.data).decode(),
                },
            },
            {"type": "text", "text": prompt},
        ]

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        try:
            response = await client.messages.create(
                model=self._model,
                max_tokens=4096,
                messages=[{"role": "user", "content": content}],
            )
            return response.content[0].text
        except Exception as e:
            raise VisionError(f"Claude request failed: {e}") from e


def _import_anthropic():
    try:
        import anthropic
    except ImportError:
        raise ImportError(
            "anthropic SDK is required: pip install anthropic"
        ) from None
    return anthropic
