"""Graph node interfaces, ports and packet transport."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol


class Timestamp:
    """Distinguished timestamp values, in microseconds.

    Ordinary packet timestamps are non-negative integers. ``UNSET`` sorts before
    everything and ``PRESTREAM`` sorts before every ordinary timestamp.
    """

    UNSET = -(2**63)
    PRESTREAM = -(2**63) + 2

    @staticmethod
    def from_msec(position_msec: float) -> int:
        return int(round(float(position_msec) * 1000.0))


class GraphConfigError(ValueError):
    """Node wiring does not match the node contract."""


class PortClosedError(RuntimeError):
    """A packet was added to an output stream after it was closed."""


class TimestampOrderError(ValueError):
    """A packet timestamp did not increase on its output stream."""


@dataclass(frozen=True, slots=True)
class Packet:
    """One payload at one timestamp."""

    payload: Any
    timestamp: int


@dataclass(frozen=True, slots=True)
class PortSpec:
    """Declared tag and payload type of a side input or output stream."""

    tag: str
    payload_type: type
    optional: bool = False


class NodeContract:
    """Port declarations collected from a node before any instance exists."""

    def __init__(
        self,
        *,
        wired_side_inputs: frozenset[str] = frozenset(),
        wired_outputs: frozenset[str] = frozenset(),
    ) -> None:
        self.wired_side_inputs = frozenset(wired_side_inputs)
        self.wired_outputs = frozenset(wired_outputs)
        self.side_inputs: dict[str, PortSpec] = {}
        self.outputs: dict[str, PortSpec] = {}

    def has_output(self, tag: str) -> bool:
        """Return whether the graph wires an output stream with this tag."""

        return tag in self.wired_outputs

    def set_side_input(self, tag: str, payload_type: type) -> None:
        self.side_inputs[tag] = PortSpec(tag=tag, payload_type=payload_type)

    def set_output(self, tag: str, payload_type: type, *, optional: bool = False) -> None:
        """Declare an output; a non-optional output must be wired by the graph."""

        self.outputs[tag] = PortSpec(tag=tag, payload_type=payload_type, optional=optional)


class OutputStream:
    """Ordered packet stream for one output tag."""

    def __init__(
        self,
        spec: PortSpec,
        observers: list[Callable[[Packet], None]] | None = None,
    ) -> None:
        self.spec = spec
        self._observers = list(observers or [])
        self._last_timestamp = Timestamp.UNSET
        self._closed = False
        self.packet_count = 0

    @property
    def tag(self) -> str:
        return self.spec.tag

    @property
    def is_closed(self) -> bool:
        return self._closed

    def add(self, payload: Any, timestamp: int) -> None:
        """Append one packet and forward it to observers."""

        if self._closed:
            raise PortClosedError(f"Output stream {self.tag} is closed.")
        if not isinstance(payload, self.spec.payload_type):
            raise TypeError(
                f"Output stream {self.tag} expects {self.spec.payload_type.__name__}, "
                f"got {type(payload).__name__}."
            )
        if timestamp <= self._last_timestamp:
            raise TimestampOrderError(
                f"Output stream {self.tag} timestamp {timestamp} is not greater "
                f"than previous {self._last_timestamp}."
            )
        self._last_timestamp = timestamp
        self.packet_count += 1
        packet = Packet(payload=payload, timestamp=timestamp)
        for observer in self._observers:
            observer(packet)

    def close(self) -> None:
        self._closed = True


@dataclass(slots=True)
class NodeContext:
    """Side inputs and output streams bound to one node instance."""

    side_inputs: dict[str, Any] = field(default_factory=dict)
    outputs: dict[str, OutputStream] = field(default_factory=dict)

    def side_input(self, tag: str) -> Any:
        return self.side_inputs[tag]

    def output(self, tag: str) -> OutputStream:
        return self.outputs[tag]

    def has_output(self, tag: str) -> bool:
        return tag in self.outputs


class ProcessStatus(str, Enum):
    """Result of one ``process`` call."""

    CONTINUE = "continue"
    STOP = "stop"


class Node(Protocol):
    """Three-phase lifecycle every graph node implements."""

    @staticmethod
    def get_contract(contract: NodeContract) -> None:
        ...

    def open(self, context: NodeContext) -> None:
        ...

    def process(self, context: NodeContext) -> ProcessStatus:
        ...

    def close(self, context: NodeContext) -> None:
        ...
