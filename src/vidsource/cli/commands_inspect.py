"""`vidsource inspect` command."""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any

from vidsource.export.frames import FRAMES_FILE, STREAM_FILE
from vidsource.storage.atomic import read_json, read_jsonl


@dataclass(slots=True)
class InspectCommand:
    """Summarize a directory written by `vidsource decode --out`."""

    path: Path


def summarize_export(out_dir: Path) -> dict[str, Any]:
    frames_path = out_dir / FRAMES_FILE
    if not frames_path.exists():
        raise FileNotFoundError(f"No frame manifest at {frames_path}")

    stream_path = out_dir / STREAM_FILE
    header = read_json(stream_path) if stream_path.exists() else None
    records = read_jsonl(frames_path)
    timestamps = [int(record["timestamp_us"]) for record in records]
    return {
        "path": str(out_dir.resolve()),
        "header": header,
        "frame_count": len(records),
        "first_timestamp_us": timestamps[0] if timestamps else None,
        "last_timestamp_us": timestamps[-1] if timestamps else None,
        "timestamps_increasing": all(a < b for a, b in zip(timestamps, timestamps[1:])),
        "missing_images": [
            record["path"] for record in records if not Path(record["path"]).exists()
        ],
    }


def execute(command: InspectCommand) -> None:
    print(json.dumps(summarize_export(command.path), indent=2, sort_keys=True))
