"""Camera and image-file frame sources using OpenCV."""

from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path


@dataclass
class Frame:
    data: bytes  # encoded image
    mime_type: str = "image/jpeg"
    captured_at: str = ""  # ISO8601
    source: str = ""  # camera index or file path


def _import_cv2():
    try:
        import cv2
    except ImportError:
        raise ImportError(
            "opencv-python is required: pip install opencv-python"
        ) from None
    return cv2


class FridgeCamera:
    """Capture frames from a USB or built-in camera."""

    def __init__(self, camera_index: int = 0, jpeg_quality: int = 80) -> None:
        self._camera_index = camera_index
        self._jpeg_quality = jpeg_quality

    def capture(self) -> Frame:
        """Capture a single frame."""
        cv2 = _import_cv2()
        cap = self._open(cv2)
        try:
            return self._read(cv2, cap)
        finally:
            cap.release()

    async def stream(self, max_frames: int | None = None) -> AsyncIterator[Frame]:
        """Yield frames until ``max_frames`` is reached or the consumer stops.

        The device stays open between frames and is released when the
        generator is closed.
        """
        cv2 = _import_cv2()
        cap = self._open(cv2)
        count = 0
        try:
            while max_frames is None or count < max_frames:
                frame = await asyncio.to_thread(self._read, cv2, cap)
                count += 1
                yield frame
        finally:
            cap.release()

    def _open(self, cv2):
        cap = cv2.VideoCapture(self._camera_index)
        if not cap.isOpened():
            cap.release()
            raise RuntimeError(
                f"Could not open camera {self._camera_index}. "
                f"Check that it is connected."
            )
        return cap

    def _read(self, cv2, cap) -> Frame:
        ret, image = cap.read()
        if not ret or image is None:
            raise RuntimeError(
                f"Could not read a frame from camera {self._camera_index}."
            )

        ok, buf = cv2.imencode(
            ".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, self._jpeg_quality]
        )
        if not ok:
            raise RuntimeError("Failed to encode frame as JPEG.")

        return Frame(
            data=buf.tobytes(),
            mime_type="image/jpeg",
            captured_at=datetime.now(timezone.utc).isoformat(),
            source=str(self._camera_index),
        )

    @staticmethod
    def list_cameras(max_check: int = 10) -> list[int]:
        """List available camera indices by probing."""
        cv2 = _import_cv2()

        available: list[int] = []
        for i in range(max_check):
            cap = cv2.VideoCapture(i)
            if cap.isOpened():
                available.append(i)
            cap.release()
        return available


def load_frame(path: str | Path) -> Frame:
    """Read an image file as a Frame."""
    p = Path(path)
    return Frame(
        data=p.read_bytes(),
        mime_type=mimetypes.guess_type(str(p))[0] or "image/jpeg",
        captured_at=datetime.fromtimestamp(
            p.stat().st_mtime, timezone.utc
        ).isoformat(),
        source=str(p),
    )


async def image_frames(paths: Iterable[str | Path]) -> AsyncIterator[Frame]:
    """Yield one frame per image file, in order."""
    for path in paths:
        yield load_frame(path)
