"""Write decoded frames and the stream header to a directory."""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Any

from PIL import Image

from vidsource.decode.session import DecodedFrame, VideoHeader
from vidsource.pipeline.stage import Packet
from vidsource.storage.atomic import atomic_write_json, atomic_write_jsonl


STREAM_FILE = "stream.json"
FRAMES_FILE = "frames.jsonl"


def frame_filename(frame_idx: int, image_format: str) -> str:
    """Return the image file name for one frame, e.g. image_000012.png."""

    return f"image_{frame_idx:06d}.{image_format}"


def header_to_dict(header: VideoHeader) -> dict[str, Any]:
    payload = asdict(header)
    payload["pixel_format"] = header.pixel_format.value
    return payload


class FrameExporter:
    """Saves each frame as an image and records a manifest on ``finish``."""

    def __init__(self, out_dir: Path, image_format: str = "png") -> None:
        self.out_dir = out_dir
        self.image_format = image_format.strip().lower()
        self._records: list[dict[str, Any]] = []
        self.out_dir.mkdir(parents=True, exist_ok=True)

    @property
    def frame_count(self) -> int:
        return len(self._records)

    def write_header(self, header: VideoHeader) -> Path:
        path = self.out_dir / STREAM_FILE
        atomic_write_json(path, header_to_dict(header))
        return path

    def write_frame(self, frame: DecodedFrame) -> Path:
        frame_idx = len(self._records)
        path = self.out_dir / frame_filename(frame_idx, self.image_format)
        image = Image.fromarray(frame.pixels)
        image.save(path)
        self._records.append(
            {
                "frame_idx": frame_idx,
                "timestamp_us": frame.timestamp,
                "path": str(path),
                "width": frame.width,
                "height": frame.height,
            }
        )
        return path

    def on_video_packet(self, packet: Packet) -> None:
        self.write_frame(packet.payload)

    def on_header_packet(self, packet: Packet) -> None:
        self.write_header(packet.payload)

    def finish(self) -> Path:
        path = self.out_dir / FRAMES_FILE
        atomic_write_jsonl(path, self._records)
        return path
