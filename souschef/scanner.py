"""Drive ingredient scans: pull frames, run the detector, merge results."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from typing import TYPE_CHECKING

from .merge import MergeSession
from .models import Ingredient
from .vision import VisionError

if TYPE_CHECKING:
    from .camera import Frame
    from .vision import VisionBackend

logger = logging.getLogger(__name__)


class ScanError(RuntimeError):
    """The frame source failed mid-scan.

    ``ingredients`` holds the merged snapshot from the frames processed
    before the failure.
    """

    def __init__(self, message: str, ingredients: list[Ingredient]) -> None:
        super().__init__(message)
        self.ingredients = ingredients


class Scanner:
    """Run one scan at a time over a frame source.

    Frames are processed strictly in sequence: each frame is detected and
    merged before the next one is requested.
    """

    def __init__(
        self,
        backend: VisionBackend,
        max_ingredients: int = 50,
        min_confidence: float = 0.5,
        frame_interval: float = 0.0,
        on_update: Callable[[list[Ingredient]], None] | None = None,
    ) -> None:
        self._backend = backend
        self._max_ingredients = max_ingredients
        self._min_confidence = min_confidence
        self._frame_interval = frame_interval
        self._on_update = on_update

    async def scan(
        self,
        frames: AsyncIterable[Frame],
        cancel: asyncio.Event | None = None,
    ) -> list[Ingredient]:
        """Scan until the source ends, the session saturates, or ``cancel`` is set.

        Returns the merged, filtered, sorted ingredients seen so far.

        Raises:
            VisionConfigError: If the backend is not configured. Raised
                before any frame is read.
            ImportError: If the backend's SDK is missing, also before
                any frame is read.
            ScanError: If the frame source fails; carries the partial
                results.
        """
        self._backend.check_configured()

        session = MergeSession(
            cap=self._max_ingredients, min_confidence=self._min_confidence
        )
        iterator = aiter(frames)
        frame_count = 0
        try:
            while True:
                if cancel is not None and cancel.is_set():
                    logger.info("Scan cancelled after %d frames", frame_count)
                    break
                try:
                    frame = await anext(iterator)
                except StopAsyncIteration:
                    break
                except Exception as e:
                    logger.warning(
                        "Frame source failed after %d frames: %s", frame_count, e
                    )
                    raise ScanError(
                        f"Frame source failed: {e}", session.snapshot()
                    ) from e
                frame_count += 1

                try:
                    batch = await self._backend.detect_ingredients(frame)
                except VisionError as e:
                    logger.warning("Skipping frame %d: %s", frame_count, e)
                    batch = []

                session.feed(batch)
                if self._on_update is not None:
                    self._on_update(session.snapshot())

                if session.is_saturated():
                    logger.info(
                        "Scan reached %d ingredients, stopping", len(session)
                    )
                    break

                if self._frame_interval > 0:
                    await asyncio.sleep(self._frame_interval)
        finally:
            await close_frames(iterator)

        result = session.snapshot()
        logger.info(
            "Scan finished: %d frames, %d ingredients (%d above %.2f)",
            frame_count,
            len(session),
            len(result),
            self._min_confidence,
        )
        return result


async def close_frames(iterator: AsyncIterator) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()


class ScanController:
    """Holds the state of the scanning screen: results, status and errors.

    ``frames`` is called to open a new frame source for every scan.

    Edits made while a scan is running (manual additions, updates and
    removals) are kept apart from the live results and applied on top of
    every new snapshot, so later frames do not undo them.
    """

    def __init__(
        self,
        backend: VisionBackend,
        frames: Callable[[], AsyncIterable[Frame]],
        max_ingredients: int = 50,
        min_confidence: float = 0.5,
        frame_interval: float = 0.0,
    ) -> None:
        self._frames = frames
        self._scanner = Scanner(
            backend,
            max_ingredients=max_ingredients,
            min_confidence=min_confidence,
            frame_interval=frame_interval,
            on_update=self._set_detected,
        )
        self._task: asyncio.Task | None = None
        self._cancel = asyncio.Event()
        self._edits: dict[str, Ingredient] = {}
        self._removed: set[str] = set()

        self.detected_ingredients: list[Ingredient] = []
        self.is_scanning = False
        self.status = "Ready to scan"
        self.error: Exception | None = None

    def _apply_edits(self, snapshot: list[Ingredient]) -> list[Ingredient]:
        seen = {i.id for i in snapshot}
        merged = [
            self._edits.get(i.id, i) for i in snapshot if i.id not in self._removed
        ]
        merged.extend(
            i
            for item_id, i in self._edits.items()
            if item_id not in seen and item_id not in self._removed
        )
        return merged

    def _set_detected(self, snapshot: list[Ingredient]) -> None:
        self.detected_ingredients = self._apply_edits(snapshot)
        self.status = f"Detected {len(self.detected_ingredients)} items"

    def start(self) -> None:
        """Start a scan in the background. Ignored while one is running."""
        if self.is_scanning:
            return

        self.is_scanning = True
        self.error = None
        self.detected_ingredients = []
        self._edits = {}
        self._removed = set()
        self.status = "Scanning ingredients..."
        self._cancel = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._cancel))

    async def _run(self, cancel: asyncio.Event) -> None:
        try:
            result = await self._scanner.scan(self._frames(), cancel=cancel)
            self.detected_ingredients = self._apply_edits(result)
            self.status = (
                f"Scan complete! Found {len(self.detected_ingredients)} ingredients"
            )
        except ScanError as e:
            logger.exception("Scan failed")
            self.detected_ingredients = self._apply_edits(e.ingredients)
            self.error = e
            self.status = "Scan failed"
        except Exception as e:
            logger.exception("Scan failed")
            self.error = e
            self.status = "Scan failed"
        finally:
            self.is_scanning = False

    async def wait(self) -> list[Ingredient]:
        """Wait for the running scan to finish and return its results."""
        if self._task is not None:
            await self._task
            self._task = None
        return self.detected_ingredients

    async def stop(self) -> list[Ingredient]:
        """Ask the running scan to stop after the current frame."""
        self._cancel.set()
        await self.wait()
        self.is_scanning = False
        if self.error is None:
            self.status = (
                "Scan captured" if self.detected_ingredients else "Ready to scan"
            )
        return self.detected_ingredients

    # Manual editing

    def add_ingredient(self, ingredient: Ingredient) -> None:
        if any(i.id == ingredient.id for i in self.detected_ingredients):
            return
        self._edits[ingredient.id] = ingredient
        self._removed.discard(ingredient.id)
        self.detected_ingredients.append(ingredient)

    def add_manual_ingredient(self, name: str, quantity: str) -> Ingredient:
        ingredient = Ingredient(
            name=name, estimated_quantity=quantity, confidence=1.0
        )
        self.add_ingredient(ingredient)
        return ingredient

    def remove_ingredient(self, ingredient_id: str) -> None:
        self._edits.pop(ingredient_id, None)
        self._removed.add(ingredient_id)
        self.detected_ingredients = [
            i for i in self.detected_ingredients if i.id != ingredient_id
        ]

    def update_ingredient(self, ingredient: Ingredient) -> None:
        for idx, existing in enumerate(self.detected_ingredients):
            if existing.id == ingredient.id:
                self.detected_ingredients[idx] = ingredient
                self._edits[ingredient.id] = ingredient
                break
