"""Load run configs from Python references."""

from __future__ import annotations

from dataclasses import is_dataclass
import importlib
import importlib.util
from pathlib import Path
from types import ModuleType
from typing import Any

from vidsource.config.schema import ExportConfig, NodeConfig, RunConfig


def _load_module(module_ref: str) -> ModuleType:
    path_candidate = Path(module_ref).expanduser()
    if path_candidate.exists():
        module_name = f"_vidsource_cfg_{path_candidate.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path_candidate)
        if spec is None or spec.loader is None:
            raise RuntimeError(f"Could not load module from path: {path_candidate}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module
    return importlib.import_module(module_ref)


def _resolve_attr(obj: Any, attr_path: str) -> Any:
    value = obj
    for part in attr_path.split("."):
        value = getattr(value, part)
    return value


def load_object(reference: str) -> Any:
    """Load object by `module_or_path:attribute` reference."""

    if ":" not in reference:
        raise ValueError("Config reference must be in form 'module_or_path:attribute'.")
    module_ref, attr = reference.split(":", maxsplit=1)
    module = _load_module(module_ref)
    return _resolve_attr(module, attr)


def load_run_config(config_ref: str | None) -> RunConfig:
    """Load a RunConfig from reference or create a default."""

    if config_ref is None:
        return RunConfig()

    loaded = load_object(config_ref)
    if not isinstance(loaded, RunConfig):
        type_name = type(loaded).__name__
        raise TypeError(f"Config reference must resolve to RunConfig, got {type_name}.")
    if not is_dataclass(loaded):
        raise TypeError("Loaded config is not a dataclass instance.")
    return loaded


def run_config_from_dict(payload: dict[str, Any]) -> RunConfig:
    """Reconstruct a RunConfig from a plain dictionary."""

    node = payload.get("node", {})
    export = payload.get("export", {})
    return RunConfig(
        node=NodeConfig(**node),
        export=ExportConfig(**export),
        log_level=str(payload.get("log_level", "INFO")),
    )
