"""Graph node decoding a video file into normalized frames.

Side inputs:
    INPUT_FILE_PATH: path of the video container (str).

Output streams:
    VIDEO: ``DecodedFrame`` packets with strictly increasing timestamps.
    VIDEO_PRESTREAM: optional, one ``VideoHeader`` at ``Timestamp.PRESTREAM``;
        closed right after.

Example node config::

    NodeConfig(
        node="VideoDecoderNode",
        input_side_packets=["INPUT_FILE_PATH:input_file_path"],
        output_streams=["VIDEO:video_frames", "VIDEO_PRESTREAM:video_header"],
    )
"""

from __future__ import annotations

from vidsource.decode.capture import CaptureFactory, open_capture
from vidsource.decode.session import DecodedFrame, DecoderSession, StepResult, VideoHeader
from vidsource.pipeline.registry import register_node
from vidsource.pipeline.stage import NodeContext, NodeContract, ProcessStatus


INPUT_FILE_PATH = "INPUT_FILE_PATH"
VIDEO = "VIDEO"
VIDEO_PRESTREAM = "VIDEO_PRESTREAM"


@register_node("VideoDecoderNode")
class VideoDecoderNode:
    """Binds a ``DecoderSession`` to the graph lifecycle."""

    def __init__(self, capture_factory: CaptureFactory = open_capture) -> None:
        self._capture_factory = capture_factory
        self._session: DecoderSession | None = None

    @staticmethod
    def get_contract(contract: NodeContract) -> None:
        contract.set_side_input(INPUT_FILE_PATH, str)
        contract.set_output(VIDEO, DecodedFrame)
        if contract.has_output(VIDEO_PRESTREAM):
            contract.set_output(VIDEO_PRESTREAM, VideoHeader, optional=True)

    @property
    def session(self) -> DecoderSession | None:
        return self._session

    def open(self, context: NodeContext) -> None:
        emit_header = context.has_output(VIDEO_PRESTREAM)
        self._session = DecoderSession(
            emit_header=emit_header,
            capture_factory=self._capture_factory,
        )
        self._session.open(
            context.side_input(INPUT_FILE_PATH),
            header_sink=context.output(VIDEO_PRESTREAM) if emit_header else None,
        )

    def process(self, context: NodeContext) -> ProcessStatus:
        if self._session is None:
            raise RuntimeError("VideoDecoderNode.process called before open.")
        if self._session.process(context.output(VIDEO)) is StepResult.STOPPED:
            return ProcessStatus.STOP
        return ProcessStatus.CONTINUE

    def close(self, context: NodeContext) -> None:
        if self._session is not None:
            self._session.close()
