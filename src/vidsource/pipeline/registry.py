"""Node registry helpers."""

from __future__ import annotations

import importlib
from typing import Callable, TypeVar

from vidsource.pipeline.stage import Node


NodeT = TypeVar("NodeT", bound=type)

_REGISTRY: dict[str, type[Node]] = {}


def register_node(name: str) -> Callable[[NodeT], NodeT]:
    """Class decorator registering a node under ``name``."""

    def _decorate(cls: NodeT) -> NodeT:
        existing = _REGISTRY.get(name)
        if existing is not None and existing is not cls:
            raise ValueError(f"Node name already registered: {name}")
        _REGISTRY[name] = cls
        return cls

    return _decorate


def load_builtin_nodes() -> None:
    """Import the modules whose nodes register themselves on import."""

    importlib.import_module("vidsource.nodes.video_decoder")


def resolve_node(name: str) -> type[Node]:
    """Return the node class registered under ``name``."""

    load_builtin_nodes()
    try:
        return _REGISTRY[name]
    except KeyError:
        known = ", ".join(sorted(_REGISTRY)) or "<none>"
        raise KeyError(f"Unknown node: {name}. Registered nodes: {known}") from None


def registered_nodes() -> list[str]:
    load_builtin_nodes()
    return sorted(_REGISTRY)
