"""Video decoder node contract and lifecycle tests."""

from __future__ import annotations

import numpy as np
import pytest

from conftest import FakeCapture, factory_for
from vidsource.decode.errors import OpenError
from vidsource.decode.session import DecodedFrame, VideoHeader
from vidsource.nodes.video_decoder import (
    INPUT_FILE_PATH,
    VIDEO,
    VIDEO_PRESTREAM,
    VideoDecoderNode,
)
from vidsource.pipeline.executor import run_node
from vidsource.pipeline.registry import resolve_node
from vidsource.pipeline.stage import (
    GraphConfigError,
    NodeContext,
    NodeContract,
    OutputStream,
    Packet,
    PortSpec,
    ProcessStatus,
    Timestamp,
)


def _frames(count: int) -> list[np.ndarray]:
    return [np.full((2, 2, 3), idx, dtype=np.uint8) for idx in range(count)]


class TestContract:
    """Port declarations made before any instance exists."""

    def test_contract_without_prestream(self) -> None:
        contract = NodeContract(
            wired_side_inputs=frozenset({INPUT_FILE_PATH}),
            wired_outputs=frozenset({VIDEO}),
        )
        VideoDecoderNode.get_contract(contract)

        assert contract.side_inputs[INPUT_FILE_PATH].payload_type is str
        assert contract.outputs[VIDEO].payload_type is DecodedFrame
        assert VIDEO_PRESTREAM not in contract.outputs

    def test_contract_with_prestream(self) -> None:
        contract = NodeContract(wired_outputs=frozenset({VIDEO, VIDEO_PRESTREAM}))
        VideoDecoderNode.get_contract(contract)

        assert contract.outputs[VIDEO_PRESTREAM].payload_type is VideoHeader

    def test_prestream_is_declared_optional(self) -> None:
        contract = NodeContract(wired_outputs=frozenset({VIDEO, VIDEO_PRESTREAM}))
        VideoDecoderNode.get_contract(contract)

        assert contract.outputs[VIDEO_PRESTREAM].optional
        assert not contract.outputs[VIDEO].optional

    def test_node_is_registered(self) -> None:
        assert resolve_node("VideoDecoderNode") is VideoDecoderNode


class TestRun:
    """Driving the node through the executor."""

    def test_header_precedes_frames_and_port_closes(self) -> None:
        capture = FakeCapture(_frames(4), fps=25.0)
        node = VideoDecoderNode(capture_factory=factory_for(capture))
        seen: list[tuple[str, Packet]] = []

        result = run_node(
            node,
            side_inputs={INPUT_FILE_PATH: "clip.mp4"},
            outputs=[VIDEO, VIDEO_PRESTREAM],
            observers={
                VIDEO: [lambda p: seen.append((VIDEO, p))],
                VIDEO_PRESTREAM: [lambda p: seen.append((VIDEO_PRESTREAM, p))],
            },
        )

        tags = [tag for tag, _packet in seen]
        assert tags == [VIDEO_PRESTREAM, VIDEO, VIDEO, VIDEO, VIDEO]
        assert seen[0][1].timestamp == Timestamp.PRESTREAM
        assert [p.timestamp for tag, p in seen[1:]] == [0, 40000, 80000, 120000]
        assert result.packet_counts == {VIDEO: 4, VIDEO_PRESTREAM: 1}
        assert result.process_calls == 5
        assert capture.releases == 1

    def test_prestream_port_closed_right_after_open(self) -> None:
        capture = FakeCapture(_frames(2))
        node = VideoDecoderNode(capture_factory=factory_for(capture))
        header_stream = OutputStream(PortSpec(tag=VIDEO_PRESTREAM, payload_type=VideoHeader))
        context = NodeContext(
            side_inputs={INPUT_FILE_PATH: "clip.mp4"},
            outputs={
                VIDEO: OutputStream(PortSpec(tag=VIDEO, payload_type=DecodedFrame)),
                VIDEO_PRESTREAM: header_stream,
            },
        )

        node.open(context)

        assert header_stream.packet_count == 1
        assert header_stream.is_closed
        assert node.process(context) is ProcessStatus.CONTINUE
        node.close(context)

    def test_video_only_wiring_emits_no_header(self) -> None:
        capture = FakeCapture(_frames(2))
        node = VideoDecoderNode(capture_factory=factory_for(capture))

        result = run_node(
            node,
            side_inputs={INPUT_FILE_PATH: "clip.mp4"},
            outputs=[VIDEO],
        )

        assert result.packet_counts == {VIDEO: 2}
        assert node.session is not None
        assert node.session.emit_header is False

    def test_open_failure_aborts_run_and_still_closes(self) -> None:
        capture = FakeCapture(_frames(2), opened=False)
        node = VideoDecoderNode(capture_factory=factory_for(capture))
        frames: list[Packet] = []

        with pytest.raises(OpenError):
            run_node(
                node,
                side_inputs={INPUT_FILE_PATH: "/nope.mp4"},
                outputs=[VIDEO, VIDEO_PRESTREAM],
                observers={VIDEO: [frames.append], VIDEO_PRESTREAM: [frames.append]},
            )

        assert frames == []
        assert capture.releases == 1

    def test_missing_file_path_side_input_is_rejected(self) -> None:
        with pytest.raises(GraphConfigError):
            run_node(VideoDecoderNode(), side_inputs={}, outputs=[VIDEO])

    def test_unwired_video_output_is_rejected_before_open(self) -> None:
        capture = FakeCapture(_frames(2))
        node = VideoDecoderNode(capture_factory=factory_for(capture))

        with pytest.raises(GraphConfigError, match=VIDEO):
            run_node(
                node,
                side_inputs={INPUT_FILE_PATH: "clip.mp4"},
                outputs=[VIDEO_PRESTREAM],
            )

        assert capture.opened_path is None
        assert node.session is None

    def test_non_string_file_path_is_rejected(self) -> None:
        with pytest.raises(GraphConfigError):
            run_node(
                VideoDecoderNode(),
                side_inputs={INPUT_FILE_PATH: 42},
                outputs=[VIDEO],
            )

    def test_close_without_open_is_safe(self) -> None:
        VideoDecoderNode().close(NodeContext())
