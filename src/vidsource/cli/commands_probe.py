"""`vidsource probe` command."""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path

from vidsource.decode.session import DecoderSession, VideoHeader
from vidsource.export.frames import header_to_dict
from vidsource.pipeline.stage import Packet, PortSpec, OutputStream


@dataclass(slots=True)
class ProbeCommand:
    """Open a video, validate its metadata and print the stream header."""

    input: Path


def probe_header(input_path: Path) -> VideoHeader:
    headers: list[VideoHeader] = []

    def _collect(packet: Packet) -> None:
        headers.append(packet.payload)

    sink = OutputStream(PortSpec(tag="VIDEO_PRESTREAM", payload_type=VideoHeader), [_collect])
    with DecoderSession(emit_header=True) as session:
        session.open(str(input_path), header_sink=sink)
    return headers[0]


def execute(command: ProbeCommand) -> None:
    header = probe_header(command.input)
    payload = {"path": str(command.input.resolve()), **header_to_dict(header)}
    print(json.dumps(payload, indent=2, sort_keys=True))
