"""Tag bindings between node ports and graph stream names."""

from __future__ import annotations

import re

from vidsource.pipeline.stage import GraphConfigError

_TAG_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")
_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


def parse_binding(binding: str) -> tuple[str, str]:
    """Split ``TAG:name`` into ``(tag, name)``.

    A bare ``TAG`` binds to the lower-cased tag, so ``VIDEO`` means
    ``VIDEO:video``.
    """

    raw = binding.strip()
    if ":" in raw:
        tag, name = raw.split(":", maxsplit=1)
    else:
        tag, name = raw, raw.lower()
    if not _TAG_PATTERN.match(tag):
        raise GraphConfigError(f"Invalid port tag in binding {binding!r}")
    if not _NAME_PATTERN.match(name):
        raise GraphConfigError(f"Invalid stream name in binding {binding!r}")
    return tag, name


def parse_bindings(bindings: list[str]) -> dict[str, str]:
    """Parse a list of bindings into ``{tag: name}``, rejecting repeated tags."""

    parsed: dict[str, str] = {}
    for binding in bindings:
        tag, name = parse_binding(binding)
        if tag in parsed:
            raise GraphConfigError(f"Port tag bound twice: {tag}")
        parsed[tag] = name
    return parsed
