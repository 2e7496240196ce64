"""Example vidsource run config."""

from vidsource.config.schema import ExportConfig, NodeConfig, RunConfig


OUT_DIR = "/tmp/vidsource/frames"

RUN = RunConfig(
    node=NodeConfig(
        node="VideoDecoderNode",
        input_side_packets=["INPUT_FILE_PATH:input_file_path"],
        output_streams=[
            "VIDEO:video_frames",
            "VIDEO_PRESTREAM:video_header",
        ],
    ),
    export=ExportConfig(
        out_dir=OUT_DIR,
        image_format="png",
    ),
    log_level="INFO",
)
