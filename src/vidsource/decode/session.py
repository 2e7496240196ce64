"""Decoder session: open a container, decode and normalize frames in order."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
from pathlib import Path
from typing import Any, Protocol

import cv2
import numpy as np

from vidsource.decode.capture import Capture, CaptureFactory, CaptureProperty, open_capture
from vidsource.decode.errors import (
    EmptyStreamError,
    InvalidMetadataError,
    OpenError,
    UnsupportedFormatError,
)
from vidsource.decode.formats import PixelFormat, channel_count, classify_channels
from vidsource.observability.logging import get_logger, log_event
from vidsource.pipeline.stage import Timestamp


_LOGGER = get_logger("vidsource.decoder")

_CONVERSIONS = {
    PixelFormat.RGB_24: cv2.COLOR_BGR2RGB,
    PixelFormat.RGBA_32: cv2.COLOR_BGRA2RGBA,
}


class PacketSink(Protocol):
    """Where the session adds packets; satisfied by graph output streams."""

    def add(self, payload: Any, timestamp: int) -> None:
        ...

    def close(self) -> None:
        ...


@dataclass(frozen=True, slots=True)
class VideoHeader:
    """Prestream description of the whole stream."""

    pixel_format: PixelFormat
    width: int
    height: int
    frame_rate: float
    duration: float


@dataclass(frozen=True, slots=True)
class StreamMetadata:
    """Container metadata validated at open time."""

    pixel_format: PixelFormat
    width: int
    height: int
    frame_rate: float
    total_frame_count: int

    @property
    def duration(self) -> float:
        return self.total_frame_count / self.frame_rate

    def to_header(self) -> VideoHeader:
        return VideoHeader(
            pixel_format=self.pixel_format,
            width=self.width,
            height=self.height,
            frame_rate=self.frame_rate,
            duration=self.duration,
        )


@dataclass(frozen=True, slots=True)
class DecodedFrame:
    """One normalized frame in RGB/RGBA channel order (or grayscale)."""

    pixels: np.ndarray
    timestamp: int
    pixel_format: PixelFormat

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def __repr__(self) -> str:
        return (
            f"DecodedFrame(timestamp={self.timestamp}, "
            f"format={self.pixel_format.value}, "
            f"size={self.width}x{self.height})"
        )


class StepResult(str, Enum):
    """Outcome of one ``DecoderSession.process`` call."""

    EMITTED = "emitted"
    DROPPED = "dropped"
    STOPPED = "stopped"


class DecoderSession:
    """Owns one capture handle from ``open`` until ``close``.

    Not thread-safe: a session is driven by a single caller that invokes
    ``open`` once, ``process`` until it returns ``StepResult.STOPPED``, and
    ``close`` once. ``close`` is idempotent and safe after a failed ``open``.
    """

    def __init__(
        self,
        *,
        emit_header: bool = False,
        capture_factory: CaptureFactory = open_capture,
    ) -> None:
        self.emit_header = emit_header
        self._capture_factory = capture_factory
        self._capture: Capture | None = None
        self._input_path: str | None = None
        self.metadata: StreamMetadata | None = None
        self.prev_timestamp = Timestamp.UNSET
        self.decoded_frame_count = 0
        self.dropped_frame_count = 0
        self._closed = False

    def __enter__(self) -> DecoderSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._capture is not None and self.metadata is not None

    def open(
        self,
        input_path: str | Path,
        header_sink: PacketSink | None = None,
    ) -> StreamMetadata:
        """Open the container, validate its metadata and rewind to the start."""

        if self.emit_header and header_sink is None:
            raise ValueError("emit_header is set but no header sink was given.")

        path = str(input_path)
        self._input_path = path
        capture = self._capture_factory(path)
        self._capture = capture
        if not capture.is_opened():
            raise OpenError(f"Failed to open video file at {path}", input_path=path)

        width = int(capture.get(CaptureProperty.FRAME_WIDTH))
        height = int(capture.get(CaptureProperty.FRAME_HEIGHT))
        frame_rate = float(capture.get(CaptureProperty.FPS))
        total_frame_count = int(capture.get(CaptureProperty.FRAME_COUNT))

        # The backend's reported format is unreliable; read one frame to count channels.
        probe = capture.read()
        if probe is None:
            raise EmptyStreamError(
                f"Failed to read any frames from the video file at {path}",
                input_path=path,
            )
        pixel_format = classify_channels(channel_count(probe))
        if pixel_format is PixelFormat.UNKNOWN:
            raise UnsupportedFormatError(
                f"Unsupported video format ({channel_count(probe)} channels) "
                f"of the video file at {path}",
                input_path=path,
            )

        valid_rate = math.isfinite(frame_rate) and frame_rate > 0
        if not valid_rate or total_frame_count <= 0 or width <= 0 or height <= 0:
            raise InvalidMetadataError(
                "Invalid metadata from the video file at "
                f"{path}: width={width} height={height} "
                f"fps={frame_rate} frame_count={total_frame_count}",
                input_path=path,
            )

        metadata = StreamMetadata(
            pixel_format=pixel_format,
            width=width,
            height=height,
            frame_rate=frame_rate,
            total_frame_count=total_frame_count,
        )
        self.metadata = metadata

        if self.emit_header and header_sink is not None:
            header_sink.add(metadata.to_header(), Timestamp.PRESTREAM)
            header_sink.close()

        capture.rewind()
        log_event(
            _LOGGER,
            "decoder_opened",
            input_path=path,
            pixel_format=pixel_format,
            width=width,
            height=height,
            frame_rate=frame_rate,
            total_frame_count=total_frame_count,
        )
        return metadata

    def process(self, video_sink: PacketSink) -> StepResult:
        """Decode one frame and add it to ``video_sink`` if its timestamp advances."""

        if self._capture is None or self.metadata is None:
            raise RuntimeError("DecoderSession.process called before a successful open.")

        meta = self.metadata
        raw = self._capture.read()
        if raw is None:
            return StepResult.STOPPED
        timestamp = Timestamp.from_msec(self._capture.get(CaptureProperty.POSITION_MSEC))

        pixels = self._normalize(raw, meta)
        if pixels is None:
            return StepResult.STOPPED

        if timestamp <= self.prev_timestamp:
            self.dropped_frame_count += 1
            return StepResult.DROPPED

        video_sink.add(
            DecodedFrame(pixels=pixels, timestamp=timestamp, pixel_format=meta.pixel_format),
            timestamp,
        )
        self.prev_timestamp = timestamp
        self.decoded_frame_count += 1
        return StepResult.EMITTED

    def _normalize(self, raw: np.ndarray, meta: StreamMetadata) -> np.ndarray | None:
        channels = meta.pixel_format.channels
        if meta.pixel_format is PixelFormat.GRAYSCALE_8:
            shape: tuple[int, ...] = (meta.height, meta.width)
            if raw.ndim == 3 and raw.shape[2] == 1:
                raw = raw[:, :, 0]
        else:
            shape = (meta.height, meta.width, channels)

        if raw.shape != shape:
            log_event(
                _LOGGER,
                "frame_geometry_mismatch",
                level=logging.WARNING,
                input_path=self._input_path,
                frame_shape=str(raw.shape),
                expected_shape=str(shape),
            )
            return None

        buffer = np.empty(shape, dtype=np.uint8)
        if meta.pixel_format is PixelFormat.GRAYSCALE_8:
            np.copyto(buffer, raw)
        else:
            cv2.cvtColor(raw, _CONVERSIONS[meta.pixel_format], dst=buffer)
        return buffer

    def close(self) -> None:
        """Release the capture and report a frame-count mismatch, if any."""

        if self._capture is not None:
            capture = self._capture
            self._capture = None
            capture.release()
            log_event(
                _LOGGER,
                "decoder_closed",
                input_path=self._input_path,
                decoded_frames=self.decoded_frame_count,
                dropped_frames=self.dropped_frame_count,
            )

        if self._closed:
            return
        self._closed = True

        meta = self.metadata
        if meta is not None and self.decoded_frame_count != meta.total_frame_count:
            log_event(
                _LOGGER,
                "frame_count_mismatch",
                level=logging.WARNING,
                input_path=self._input_path,
                total_frames=meta.total_frame_count,
                decoded_frames=self.decoded_frame_count,
            )
