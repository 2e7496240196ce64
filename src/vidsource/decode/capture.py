"""Video capture backend boundary.

The decoder session only talks to a capture through the ``Capture`` protocol,
so synthetic captures can stand in for OpenCV in tests.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

import cv2
import numpy as np


class CaptureProperty(str, Enum):
    """Numeric properties queried from a capture backend."""

    FRAME_WIDTH = "frame_width"
    FRAME_HEIGHT = "frame_height"
    FPS = "fps"
    FRAME_COUNT = "frame_count"
    POSITION_MSEC = "position_msec"


class Capture(Protocol):
    """Operations the decoder session needs from a video-decode library."""

    def is_opened(self) -> bool:
        ...

    def get(self, prop: CaptureProperty) -> float:
        ...

    def read(self) -> np.ndarray | None:
        """Return the next raw frame in native channel order, or None."""
        ...

    def rewind(self) -> None:
        ...

    def release(self) -> None:
        ...


CaptureFactory = Callable[[str], Capture]


_CV2_PROPS = {
    CaptureProperty.FRAME_WIDTH: cv2.CAP_PROP_FRAME_WIDTH,
    CaptureProperty.FRAME_HEIGHT: cv2.CAP_PROP_FRAME_HEIGHT,
    CaptureProperty.FPS: cv2.CAP_PROP_FPS,
    CaptureProperty.FRAME_COUNT: cv2.CAP_PROP_FRAME_COUNT,
    CaptureProperty.POSITION_MSEC: cv2.CAP_PROP_POS_MSEC,
}


class OpenCvCapture:
    """``Capture`` backed by ``cv2.VideoCapture``.

    OpenCV returns BGR or BGRA frames for color sources and 2-D arrays for
    single-channel sources.
    """

    def __init__(self, path: str | Path) -> None:
        self._cap = cv2.VideoCapture(str(path))

    def is_opened(self) -> bool:
        return bool(self._cap.isOpened())

    def get(self, prop: CaptureProperty) -> float:
        return float(self._cap.get(_CV2_PROPS[prop]))

    def read(self) -> np.ndarray | None:
        ok, frame = self._cap.read()
        if not ok or frame is None or frame.size == 0:
            return None
        return frame

    def rewind(self) -> None:
        self._cap.set(cv2.CAP_PROP_POS_FRAMES, 0)

    def release(self) -> None:
        self._cap.release()


def open_capture(path: str) -> Capture:
    """Default capture factory."""

    return OpenCvCapture(path)
