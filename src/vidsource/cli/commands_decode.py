"""`vidsource decode` command."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from vidsource.config.loader import load_run_config
from vidsource.config.schema import RunConfig
from vidsource.export.frames import FrameExporter
from vidsource.observability.logging import set_log_level
from vidsource.pipeline.dag import parse_bindings
from vidsource.pipeline.executor import NodeRunResult, PacketObserver, run_node


@dataclass(slots=True)
class DecodeCommand:
    """Decode a video through the graph node and optionally export frames."""

    input: Path
    config: str | None = None
    out: Path | None = None
    image_format: str | None = None
    log_level: str | None = None


def decode_video(
    input_path: Path,
    cfg: RunConfig,
    exporter: FrameExporter | None = None,
) -> NodeRunResult:
    """Run the configured node on one input file."""

    side_bindings = parse_bindings(cfg.node.input_side_packets)
    output_bindings = parse_bindings(cfg.node.output_streams)
    side_inputs = {tag: str(input_path) for tag in side_bindings}

    observers: dict[str, list[PacketObserver]] = {}
    if exporter is not None:
        observers["VIDEO"] = [exporter.on_video_packet]
        observers["VIDEO_PRESTREAM"] = [exporter.on_header_packet]

    return run_node(
        cfg.node.node,
        side_inputs=side_inputs,
        outputs=output_bindings.keys(),
        observers=observers,
    )


def execute(command: DecodeCommand) -> None:
    cfg = load_run_config(command.config)
    # CLI flags win over the loaded config.
    if command.out is not None:
        cfg.export.out_dir = str(command.out)
    if command.image_format is not None:
        cfg.export.image_format = command.image_format
    if command.log_level is not None:
        cfg.log_level = command.log_level
    set_log_level(cfg.log_level)

    exporter = None
    if cfg.export.out_dir is not None:
        exporter = FrameExporter(Path(cfg.export.out_dir), cfg.export.image_format)

    result = decode_video(command.input, cfg, exporter)
    if exporter is not None:
        exporter.finish()

    frames = result.packet_counts.get("VIDEO", 0)
    print(
        f"decode node={result.node} frames={frames} "
        f"process_calls={result.process_calls} elapsed_sec={result.elapsed_sec:.3f}"
        + (f" out={cfg.export.out_dir}" if exporter is not None else "")
    )
