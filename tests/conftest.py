"""
Test Configuration
==================

Shared fixtures: a synthetic in-memory capture, structured log capture and a
small on-disk video written with OpenCV.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import cv2
import numpy as np
import pytest

from vidsource.decode.capture import CaptureProperty
from vidsource.observability.logging import configure_logging, set_log_level


class FakeCapture:
    """In-memory ``Capture`` that replays a fixed list of native-order frames.

    ``positions_msec[i]`` is reported as the playback position once frame
    ``i`` has been read, matching OpenCV's ``CAP_PROP_POS_MSEC``.
    """

    def __init__(
        self,
        frames: list[np.ndarray],
        *,
        positions_msec: list[float] | None = None,
        width: float | None = None,
        height: float | None = None,
        fps: float = 30.0,
        frame_count: float | None = None,
        opened: bool = True,
    ) -> None:
        self.frames = frames
        first = frames[0] if frames else np.zeros((1, 1, 3), dtype=np.uint8)
        step_msec = 1000.0 / fps if fps > 0 else 1.0
        self.positions_msec = (
            positions_msec
            if positions_msec is not None
            else [i * step_msec for i in range(len(frames))]
        )
        self.props = {
            CaptureProperty.FRAME_WIDTH: float(first.shape[1] if width is None else width),
            CaptureProperty.FRAME_HEIGHT: float(first.shape[0] if height is None else height),
            CaptureProperty.FPS: float(fps),
            CaptureProperty.FRAME_COUNT: float(len(frames) if frame_count is None else frame_count),
        }
        self.opened = opened
        self.opened_path: str | None = None
        self.index = 0
        self.reads = 0
        self.rewinds = 0
        self.releases = 0

    def is_opened(self) -> bool:
        return self.opened

    def get(self, prop: CaptureProperty) -> float:
        if prop is CaptureProperty.POSITION_MSEC:
            if self.index == 0 or not self.positions_msec:
                return 0.0
            return float(self.positions_msec[min(self.index, len(self.positions_msec)) - 1])
        return self.props[prop]

    def read(self) -> np.ndarray | None:
        self.reads += 1
        if self.index >= len(self.frames):
            return None
        frame = self.frames[self.index]
        self.index += 1
        return frame

    def rewind(self) -> None:
        self.rewinds += 1
        self.index = 0

    def release(self) -> None:
        self.releases += 1
        self.opened = False


def factory_for(capture: FakeCapture) -> Callable[[str], FakeCapture]:
    """Return a capture factory that always hands out ``capture``."""

    def _factory(path: str) -> FakeCapture:
        capture.opened_path = path
        return capture

    return _factory


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def log_records():
    """Collect records emitted under the vidsource logger namespace."""

    logger = configure_logging()
    set_log_level("INFO")
    handler = _ListHandler()
    logger.addHandler(handler)
    yield handler.records
    logger.removeHandler(handler)


@pytest.fixture
def bgr_frame() -> np.ndarray:
    """A 2x2 BGR frame with distinct values per channel."""

    frame = np.zeros((2, 2, 3), dtype=np.uint8)
    frame[..., 0] = 10
    frame[..., 1] = 20
    frame[..., 2] = 30
    return frame


@pytest.fixture
def vga_capture() -> FakeCapture:
    """3-channel, 30 fps, 90 frame, 640x480 source."""

    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    return FakeCapture([frame] * 90, fps=30.0)


@pytest.fixture
def mjpg_video(tmp_path: Path) -> Path:
    """Write a 10 frame 64x48 MJPG AVI at 10 fps, skipping if OpenCV cannot."""

    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG AVI files")
    try:
        for idx in range(10):
            frame = np.full((48, 64, 3), (idx * 20) % 256, dtype=np.uint8)
            frame[..., 2] = 200
            writer.write(frame)
    finally:
        writer.release()

    check = cv2.VideoCapture(str(path))
    readable = check.isOpened()
    check.release()
    if not readable:
        pytest.skip("OpenCV build cannot read back MJPG AVI files")
    return path
