"""Decoder error taxonomy."""

from __future__ import annotations

from pathlib import Path


class DecoderError(RuntimeError):
    """Base class for failures raised while decoding one input file."""

    def __init__(self, message: str, *, input_path: str | Path | None = None) -> None:
        super().__init__(message)
        self.input_path = None if input_path is None else str(input_path)


class OpenError(DecoderError):
    """The container could not be opened at all."""


class EmptyStreamError(DecoderError):
    """The container opened but yielded no decodable frame."""


class UnsupportedFormatError(DecoderError):
    """The decoded channel count has no canonical pixel format."""


class InvalidMetadataError(DecoderError):
    """Width, height, frame rate or frame count is not positive."""
