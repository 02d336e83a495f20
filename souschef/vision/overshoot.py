"""Overshoot real-time inference backend for ingredient detection."""

from __future__ import annotations

import base64
import logging
import time
from typing import TYPE_CHECKING

import httpx

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

logger = logging.getLogger(__name__)

# Placeholder shipped in sample configs; treated the same as no key.
_PLACEHOLDER_KEY = "INSERT_KEY_HERE"


class OvershootVisionBackend(VisionBackend):
    """Detect ingredients by posting frames to the Overshoot REST API."""

    def __init__(
        self,
        api_key: str = "",
        url: str = "https://api.overshoot.ai/v1/detect",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._timeout = timeout
        self._client = client

    def check_configured(self) -> None:
        if not self._api_key or self._api_key == _PLACEHOLDER_KEY:
            raise VisionConfigError(
                "Overshoot API key is not configured. "
                "Check the config file or the OVERSHOOT_API_KEY environment variable."
            )

    async def detect_ingredients(self, frame: Frame) -> list[Detection]:
        self.check_configured()
        body = await self._post(_request_body("detect_ingredients", frame))
        return parse_detections(body)

    async def analyze_cooking_progress(
        self, frame: Frame, step: str
    ) -> CookingProgress:
        self.check_configured()
        body = await self._post(
            _request_body("analyze_cooking", frame, context=step)
        )
        return parse_progress(body)

    async def _post(self, payload: dict) -> dict | list:
        logger.debug("POST %s (%s)", self._url, payload["type"])
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            if self._client is not None:
                response = await self._client.post(
                    self._url, json=payload, headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(
                        self._url, json=payload, headers=headers
                    )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise VisionError(f"Overshoot request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise VisionError(f"Failed to decode Overshoot response: {e}") from e


def _request_body(kind: str, frame: Frame, context: str | None = None) -> dict:
    body = {
        "type": kind,
        "image": base64.standard_b64encode(frame.data).decode(),
        "timestamp": time.time(),
    }
    if context is not None:
        body["context"] = context
    return body
