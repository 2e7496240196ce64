"""Dataclass-based configuration schema for vidsource."""

from dataclasses import dataclass, field
from typing import Literal


@dataclass(slots=True)
class NodeConfig:
    """Graph node wiring: which node runs and how its ports are bound."""

    node: str = "VideoDecoderNode"
    input_side_packets: list[str] = field(
        default_factory=lambda: ["INPUT_FILE_PATH:input_file_path"]
    )
    output_streams: list[str] = field(
        default_factory=lambda: ["VIDEO:video_frames", "VIDEO_PRESTREAM:video_header"]
    )


@dataclass(slots=True)
class ExportConfig:
    """Decoded frame export options."""

    out_dir: str | None = None
    image_format: Literal["png", "bmp", "tiff"] = "png"


@dataclass(slots=True)
class RunConfig:
    """Top-level decode run configuration."""

    node: NodeConfig = field(default_factory=NodeConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    log_level: str = "INFO"
