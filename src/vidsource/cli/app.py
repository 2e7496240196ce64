"""Tyro CLI application entrypoint."""

from __future__ import annotations

from typing import Annotated

import tyro

from vidsource.cli import commands_decode, commands_inspect, commands_probe


TopLevelCommand = Annotated[
    commands_probe.ProbeCommand,
    tyro.conf.subcommand(name="probe"),
] | Annotated[
    commands_decode.DecodeCommand,
    tyro.conf.subcommand(name="decode"),
] | Annotated[
    commands_inspect.InspectCommand,
    tyro.conf.subcommand(name="inspect"),
]


def dispatch(command: TopLevelCommand) -> None:
    """Dispatch parsed top-level command object."""

    if isinstance(command, commands_probe.ProbeCommand):
        commands_probe.execute(command)
        return
    if isinstance(command, commands_decode.DecodeCommand):
        commands_decode.execute(command)
        return
    if isinstance(command, commands_inspect.InspectCommand):
        commands_inspect.execute(command)
        return
    raise TypeError(f"Unsupported command type: {type(command).__name__}")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run requested command."""

    command = tyro.cli(TopLevelCommand, args=argv)
    dispatch(command)
