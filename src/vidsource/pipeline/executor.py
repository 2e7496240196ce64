"""In-process executor driving one node through its lifecycle."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
import logging
import time
from typing import Any

from vidsource.observability.logging import get_logger, log_event
from vidsource.pipeline.registry import resolve_node
from vidsource.pipeline.stage import (
    GraphConfigError,
    Node,
    NodeContext,
    NodeContract,
    OutputStream,
    Packet,
    ProcessStatus,
)


_LOGGER = get_logger("vidsource.executor")

PacketObserver = Callable[[Packet], None]


@dataclass(slots=True)
class NodeRunResult:
    """Summary of one completed node run."""

    node: str
    process_calls: int
    packet_counts: dict[str, int] = field(default_factory=dict)
    elapsed_sec: float = 0.0


def _node_name(node: Node) -> str:
    return type(node).__name__


def build_contract(
    node_cls: type[Node],
    *,
    side_input_tags: Iterable[str],
    output_tags: Iterable[str],
) -> NodeContract:
    """Collect a node's port declarations and check them against the wiring."""

    contract = NodeContract(
        wired_side_inputs=frozenset(side_input_tags),
        wired_outputs=frozenset(output_tags),
    )
    node_cls.get_contract(contract)

    undeclared = sorted(contract.wired_outputs - set(contract.outputs))
    if undeclared:
        raise GraphConfigError(
            f"{node_cls.__name__} does not declare output tags: {', '.join(undeclared)}"
        )
    unwired = sorted(
        tag
        for tag, spec in contract.outputs.items()
        if not spec.optional and tag not in contract.wired_outputs
    )
    if unwired:
        raise GraphConfigError(
            f"{node_cls.__name__} requires output streams: {', '.join(unwired)}"
        )
    missing = sorted(set(contract.side_inputs) - contract.wired_side_inputs)
    if missing:
        raise GraphConfigError(
            f"{node_cls.__name__} requires side inputs: {', '.join(missing)}"
        )
    unexpected = sorted(contract.wired_side_inputs - set(contract.side_inputs))
    if unexpected:
        raise GraphConfigError(
            f"{node_cls.__name__} does not accept side inputs: {', '.join(unexpected)}"
        )
    return contract


def _check_side_inputs(contract: NodeContract, side_inputs: Mapping[str, Any]) -> None:
    for tag, spec in contract.side_inputs.items():
        value = side_inputs[tag]
        if not isinstance(value, spec.payload_type):
            raise GraphConfigError(
                f"Side input {tag} expects {spec.payload_type.__name__}, "
                f"got {type(value).__name__}"
            )


def run_node(
    node: Node | str,
    *,
    side_inputs: Mapping[str, Any],
    outputs: Iterable[str],
    observers: Mapping[str, list[PacketObserver]] | None = None,
) -> NodeRunResult:
    """Run ``node`` from contract validation to close.

    ``node`` is either a node instance or a registered node name. Packets are
    delivered to ``observers`` keyed by output tag as they are added. Failures
    in ``open`` or ``process`` propagate after ``close`` has run.
    """

    instance: Node = resolve_node(node)() if isinstance(node, str) else node
    name = _node_name(instance)
    contract = build_contract(
        type(instance),
        side_input_tags=side_inputs.keys(),
        output_tags=outputs,
    )
    _check_side_inputs(contract, side_inputs)

    observers = observers or {}
    streams = {
        tag: OutputStream(spec, observers=observers.get(tag))
        for tag, spec in contract.outputs.items()
        if tag in contract.wired_outputs
    }
    context = NodeContext(side_inputs=dict(side_inputs), outputs=streams)

    started = time.perf_counter()
    log_event(_LOGGER, "node_started", node=name, outputs=",".join(sorted(streams)))
    process_calls = 0
    try:
        try:
            instance.open(context)
        except Exception as exc:
            log_event(
                _LOGGER,
                "node_open_failed",
                level=logging.ERROR,
                exc_info=True,
                node=name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise

        while True:
            process_calls += 1
            if instance.process(context) is ProcessStatus.STOP:
                break
    finally:
        instance.close(context)
        for stream in streams.values():
            stream.close()

    elapsed = time.perf_counter() - started
    result = NodeRunResult(
        node=name,
        process_calls=process_calls,
        packet_counts={tag: stream.packet_count for tag, stream in streams.items()},
        elapsed_sec=elapsed,
    )
    log_event(
        _LOGGER,
        "node_finished",
        node=name,
        process_calls=process_calls,
        elapsed_sec=round(elapsed, 6),
        **{f"packets_{tag.lower()}": count for tag, count in result.packet_counts.items()},
    )
    return result
