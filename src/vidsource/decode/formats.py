"""Canonical pixel formats and channel-count classification."""

from __future__ import annotations

from enum import Enum

import numpy as np


class PixelFormat(str, Enum):
    """In-memory pixel layouts handed to downstream consumers."""

    GRAYSCALE_8 = "gray8"
    RGB_24 = "rgb24"
    RGBA_32 = "rgba32"
    UNKNOWN = "unknown"

    @property
    def channels(self) -> int:
        """Channels per pixel, 0 for UNKNOWN."""

        return _CHANNELS_BY_FORMAT[self]


_CHANNELS_BY_FORMAT = {
    PixelFormat.GRAYSCALE_8: 1,
    PixelFormat.RGB_24: 3,
    PixelFormat.RGBA_32: 4,
    PixelFormat.UNKNOWN: 0,
}

_FORMAT_BY_CHANNELS = {
    1: PixelFormat.GRAYSCALE_8,
    3: PixelFormat.RGB_24,
    4: PixelFormat.RGBA_32,
}


def classify_channels(num_channels: int) -> PixelFormat:
    """Map a decoded channel count to its canonical pixel format.

    Capture backends hand back 8-bit samples, so the channel count alone
    decides the format. Counts outside {1, 3, 4} map to UNKNOWN.
    """

    return _FORMAT_BY_CHANNELS.get(num_channels, PixelFormat.UNKNOWN)


def channel_count(frame: np.ndarray) -> int:
    """Return the channel count of a raw decoded frame."""

    if frame.ndim == 2:
        return 1
    if frame.ndim == 3:
        return int(frame.shape[2])
    return 0
