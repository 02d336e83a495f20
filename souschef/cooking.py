"""Step-by-step cooking guidance with camera-based progress monitoring."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, Callable
from typing import TYPE_CHECKING

from .scanner import close_frames
from .vision import CookingProgress, VisionError

if TYPE_CHECKING:
    from .camera import Frame
    from .models import Recipe
    from .recipes import RecipeService
    from .vision import VisionBackend

logger = logging.getLogger(__name__)

RECIPE_COMPLETE = "Recipe complete!"


class CookingSession:
    """Walk through a recipe's steps, watching the camera for each one."""

    def __init__(
        self,
        recipe: Recipe,
        backend: VisionBackend,
        recipe_service: RecipeService | None = None,
        frames: Callable[[], AsyncIterable[Frame]] | None = None,
        completion_confidence: float = 0.8,
        frame_interval: float = 0.0,
    ) -> None:
        self.recipe = recipe
        self._backend = backend
        self._recipe_service = recipe_service
        self._frames = frames
        self._completion_confidence = completion_confidence
        self._frame_interval = frame_interval
        self._task: asyncio.Task | None = None
        self._cancel = asyncio.Event()

        self.current_step_index = 0
        self.is_monitoring = False
        self.feedback = "Ready to start"
        self.step_complete = False
        self.confidence = 0.0
        self.error: Exception | None = None

    @property
    def current_step(self) -> str:
        if self.current_step_index >= len(self.recipe.steps):
            return RECIPE_COMPLETE
        return self.recipe.steps[self.current_step_index]

    @property
    def progress(self) -> float:
        if not self.recipe.steps:
            return 0.0
        return self.current_step_index / len(self.recipe.steps)

    @property
    def is_complete(self) -> bool:
        return self.current_step_index >= len(self.recipe.steps)

    # Step navigation

    async def next_step(self) -> None:
        if self.is_complete:
            return

        was_monitoring = self.is_monitoring
        if was_monitoring:
            await self.stop_monitoring()
        self.current_step_index += 1
        self._reset_step()
        self.feedback = (
            "Starting next step..." if not self.is_complete else RECIPE_COMPLETE
        )
        if was_monitoring and not self.is_complete:
            self.start_monitoring()

    async def previous_step(self) -> None:
        if self.current_step_index == 0:
            return

        was_monitoring = self.is_monitoring
        if was_monitoring:
            await self.stop_monitoring()
        self.current_step_index -= 1
        self._reset_step()
        self.feedback = "Returned to previous step"
        if was_monitoring:
            self.start_monitoring()

    def _reset_step(self) -> None:
        self.step_complete = False
        self.confidence = 0.0

    # Monitoring

    async def watch_step(
        self,
        frames: AsyncIterable[Frame] | None = None,
        cancel: asyncio.Event | None = None,
    ) -> CookingProgress:
        """Watch frames until the current step looks finished.

        Returns early on the first frame reporting completion with
        confidence above the completion threshold; otherwise returns the
        latest progress once the frames run out or ``cancel`` is set.
        Frames come from the session's own source unless ``frames`` is given,
        and are spaced ``frame_interval`` seconds apart.

        Raises:
            VisionConfigError: If the backend is not configured.
            ValueError: If no frames are given and the session has no source.
        """
        self._backend.check_configured()
        if frames is None:
            if self._frames is None:
                raise ValueError("No frame source configured for monitoring")
            frames = self._frames()

        step = self.current_step
        latest = CookingProgress(
            is_complete=False, confidence=0.0, feedback="Analyzing..."
        )
        iterator = aiter(frames)
        try:
            while cancel is None or not cancel.is_set():
                try:
                    frame = await anext(iterator)
                except StopAsyncIteration:
                    break

                try:
                    progress = await self._backend.analyze_cooking_progress(
                        frame, step
                    )
                except VisionError as e:
                    logger.warning("Skipping cooking frame: %s", e)
                else:
                    latest = progress
                    if (
                        progress.is_complete
                        and progress.confidence > self._completion_confidence
                    ):
                        break

                if self._frame_interval > 0:
                    await asyncio.sleep(self._frame_interval)
        finally:
            await close_frames(iterator)

        self._handle_progress(latest)
        return latest

    def _handle_progress(self, progress: CookingProgress) -> None:
        self.confidence = progress.confidence
        self.feedback = progress.feedback
        self.step_complete = progress.is_complete
        if (
            progress.is_complete
            and progress.confidence > self._completion_confidence
        ):
            logger.info(
                "Step %d complete: %s",
                self.current_step_index + 1,
                progress.feedback,
            )

    def start_monitoring(self) -> None:
        """Monitor the current step in the background."""
        if self.is_complete or self.is_monitoring:
            return
        if self._frames is None:
            raise ValueError("No frame source configured for monitoring")

        self.is_monitoring = True
        self.error = None
        self.feedback = "Monitoring your cooking..."
        self._cancel = asyncio.Event()
        self._task = asyncio.create_task(self._monitor(self._cancel))

    async def _monitor(self, cancel: asyncio.Event) -> None:
        try:
            await self.watch_step(cancel=cancel)
        except Exception as e:
            logger.exception("Cooking monitor failed")
            self.error = e
            self.feedback = "Monitoring paused"
        finally:
            self.is_monitoring = False

    async def wait(self) -> None:
        if self._task is not None:
            await self._task
            self._task = None

    async def stop_monitoring(self) -> None:
        self._cancel.set()
        await self.wait()
        self.is_monitoring = False
        self.feedback = "Monitoring stopped"

    async def get_guidance(self) -> str:
        """Ask the recipe service for guidance on the current step."""
        if self._recipe_service is None:
            return self.feedback
        try:
            self.feedback = await self._recipe_service.provide_cooking_guidance(
                self.current_step, context=self.feedback
            )
        except Exception as e:
            logger.exception("Cooking guidance failed")
            self.error = e
        return self.feedback
