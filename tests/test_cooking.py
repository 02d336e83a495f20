"""Tests for step-by-step cooking sessions."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from souschef.camera import Frame
from souschef.cooking import RECIPE_COMPLETE, CookingSession
from souschef.models import Recipe
from souschef.vision import CookingProgress, VisionConfigError, VisionError


def progress(is_complete, confidence, feedback="..."):
    return CookingProgress(
        is_complete=is_complete, confidence=confidence, feedback=feedback
    )


async def frames(count=None):
    i = 0
    while count is None or i < count:
        yield Frame(data=b"jpeg", source=str(i))
        i += 1
        await asyncio.sleep(0)


async def still_frames(count):
    for i in range(count):
        yield Frame(data=b"jpeg", source=str(i))


@pytest.fixture
def recipe():
    return Recipe(title="Pasta", steps=["Boil water", "Cook pasta", "Drain"])


@pytest.fixture
def backend():
    mock = MagicMock()
    mock.check_configured.return_value = None
    mock.analyze_cooking_progress = AsyncMock(return_value=progress(False, 0.2))
    return mock


class TestNavigation:
    @pytest.mark.asyncio
    async def test_initial_state(self, recipe, backend):
        session = CookingSession(recipe, backend)
        assert session.current_step == "Boil water"
        assert session.progress == 0.0
        assert session.is_complete is False

    @pytest.mark.asyncio
    async def test_next_and_previous(self, recipe, backend):
        session = CookingSession(recipe, backend)

        await session.next_step()
        assert session.current_step == "Cook pasta"
        assert session.feedback == "Starting next step..."

        await session.previous_step()
        assert session.current_step == "Boil water"
        assert session.feedback == "Returned to previous step"

    @pytest.mark.asyncio
    async def test_previous_at_start_is_noop(self, recipe, backend):
        session = CookingSession(recipe, backend)
        await session.previous_step()
        assert session.current_step_index == 0

    @pytest.mark.asyncio
    async def test_finishing_recipe(self, recipe, backend):
        session = CookingSession(recipe, backend)
        for _ in range(3):
            await session.next_step()

        assert session.is_complete is True
        assert session.current_step == RECIPE_COMPLETE
        assert session.feedback == RECIPE_COMPLETE
        assert session.progress == 1.0

        await session.next_step()
        assert session.current_step_index == 3


class TestWatchStep:
    @pytest.mark.asyncio
    async def test_stops_on_confident_completion(self, recipe, backend):
        backend.analyze_cooking_progress.side_effect = [
            progress(False, 0.5, "Not boiling yet"),
            progress(True, 0.6, "Maybe boiling"),
            progress(True, 0.95, "Rolling boil"),
            progress(False, 0.1, "unreached"),
        ]
        session = CookingSession(recipe, backend)

        result = await session.watch_step(frames())

        assert result.feedback == "Rolling boil"
        assert backend.analyze_cooking_progress.call_count == 3
        assert session.step_complete is True
        assert session.confidence == 0.95
        assert backend.analyze_cooking_progress.call_args[0][1] == "Boil water"

    @pytest.mark.asyncio
    async def test_returns_latest_when_frames_run_out(self, recipe, backend):
        backend.analyze_cooking_progress.side_effect = [
            progress(False, 0.3, "first"),
            progress(False, 0.4, "second"),
        ]
        session = CookingSession(recipe, backend)

        result = await session.watch_step(frames(2))
        assert result.feedback == "second"
        assert session.step_complete is False

    @pytest.mark.asyncio
    async def test_failed_frames_skipped(self, recipe, backend):
        backend.analyze_cooking_progress.side_effect = [
            VisionError("timeout"),
            progress(True, 0.9, "Done"),
        ]
        session = CookingSession(recipe, backend)

        result = await session.watch_step(frames(2))
        assert result.feedback == "Done"

    @pytest.mark.asyncio
    async def test_unconfigured_backend(self, recipe, backend):
        backend.check_configured.side_effect = VisionConfigError("no key")
        session = CookingSession(recipe, backend)

        with pytest.raises(VisionConfigError):
            await session.watch_step(frames(1))
        backend.analyze_cooking_progress.assert_not_called()

    @pytest.mark.asyncio
    async def test_frames_spaced_by_interval(self, recipe, backend):
        session = CookingSession(recipe, backend, frame_interval=1.5)

        with patch("souschef.cooking.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await session.watch_step(still_frames(3))

        assert backend.analyze_cooking_progress.call_count == 3
        assert sleep.await_count == 3
        sleep.assert_awaited_with(1.5)

    @pytest.mark.asyncio
    async def test_no_wait_after_completed_step(self, recipe, backend):
        backend.analyze_cooking_progress.return_value = progress(True, 0.9)
        session = CookingSession(recipe, backend, frame_interval=1.5)

        with patch("souschef.cooking.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await session.watch_step(still_frames(3))

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_uses_session_frame_source(self, recipe, backend):
        opened = []

        def source():
            opened.append(True)
            return frames(2)

        session = CookingSession(recipe, backend, frames=source)
        await session.watch_step()

        assert opened == [True]
        assert backend.analyze_cooking_progress.call_count == 2

    @pytest.mark.asyncio
    async def test_no_frame_source(self, recipe, backend):
        session = CookingSession(recipe, backend)
        with pytest.raises(ValueError):
            await session.watch_step()


class TestMonitoring:
    @pytest.mark.asyncio
    async def test_requires_frame_source(self, recipe, backend):
        session = CookingSession(recipe, backend)
        with pytest.raises(ValueError):
            session.start_monitoring()

    @pytest.mark.asyncio
    async def test_monitor_until_complete(self, recipe, backend):
        backend.analyze_cooking_progress.side_effect = [
            progress(False, 0.3),
            progress(True, 0.9, "Water is boiling"),
        ]
        session = CookingSession(recipe, backend, frames=frames)

        session.start_monitoring()
        assert session.is_monitoring is True
        await session.wait()

        assert session.step_complete is True
        assert session.feedback == "Water is boiling"
        assert session.is_monitoring is False

    @pytest.mark.asyncio
    async def test_monitoring_can_restart_after_finishing(self, recipe, backend):
        backend.analyze_cooking_progress.return_value = progress(True, 0.9)
        session = CookingSession(recipe, backend, frames=lambda: frames(1))

        session.start_monitoring()
        await session.wait()
        assert session.is_monitoring is False

        session.start_monitoring()
        assert session.is_monitoring is True
        await session.wait()
        assert backend.analyze_cooking_progress.call_count == 2

    @pytest.mark.asyncio
    async def test_stop_monitoring(self, recipe, backend):
        session = CookingSession(recipe, backend, frames=frames)

        session.start_monitoring()
        await asyncio.sleep(0.01)
        await session.stop_monitoring()

        assert session.is_monitoring is False
        assert session.feedback == "Monitoring stopped"

    @pytest.mark.asyncio
    async def test_next_step_restarts_monitoring(self, recipe, backend):
        session = CookingSession(recipe, backend, frames=frames)

        session.start_monitoring()
        await asyncio.sleep(0.01)
        await session.next_step()

        assert session.is_monitoring is True
        assert session.current_step == "Cook pasta"
        assert session.feedback == "Monitoring your cooking..."
        await session.stop_monitoring()

    @pytest.mark.asyncio
    async def test_monitor_failure_pauses(self, recipe, backend):
        backend.check_configured.side_effect = VisionConfigError("no key")
        session = CookingSession(recipe, backend, frames=frames)

        session.start_monitoring()
        await session.wait()

        assert isinstance(session.error, VisionConfigError)
        assert session.feedback == "Monitoring paused"
        assert session.is_monitoring is False


class TestGuidance:
    @pytest.mark.asyncio
    async def test_guidance_from_service(self, recipe, backend):
        service = MagicMock()
        service.provide_cooking_guidance = AsyncMock(return_value="Salt the water.")
        session = CookingSession(recipe, backend, recipe_service=service)

        assert await session.get_guidance() == "Salt the water."
        service.provide_cooking_guidance.assert_called_once_with(
            "Boil water", context="Ready to start"
        )

    @pytest.mark.asyncio
    async def test_guidance_failure_keeps_feedback(self, recipe, backend):
        service = MagicMock()
        service.provide_cooking_guidance = AsyncMock(side_effect=RuntimeError("down"))
        session = CookingSession(recipe, backend, recipe_service=service)

        assert await session.get_guidance() == "Ready to start"
        assert isinstance(session.error, RuntimeError)

    @pytest.mark.asyncio
    async def test_guidance_without_service(self, recipe, backend):
        session = CookingSession(recipe, backend)
        assert await session.get_guidance() == "Ready to start"
