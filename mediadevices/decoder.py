"""Decoders that turn raw audio bytes into audio chunks."""

from __future__ import annotations

import enum
import sys
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

import numpy as np

from mediadevices.wave import (
    Audio,
    ChunkInfo,
    Float32Interleaved,
    Float32NonInterleaved,
    Int16Interleaved,
    Int16NonInterleaved,
)


class ByteOrder(enum.Enum):
    """Byte order of raw samples."""

    BIG = ">"
    LITTLE = "<"


HOST_BYTE_ORDER = ByteOrder.LITTLE if sys.byteorder == "little" else ByteOrder.BIG


class DecoderError(ValueError):
    """Raised for invalid raw audio or an unknown raw format."""


@dataclass(frozen=True)
class RawFormat:
    """Memory layout of raw audio samples."""

    sample_size: int
    is_float: bool
    interleaved: bool

    def __str__(self) -> str:
        data_type = "Float" if self.is_float else "Int"
        layout = "Interleaved" if self.interleaved else "NonInterleaved"
        return f"{data_type}{self.sample_size * 8}{layout}"


Decoder = Callable[[ByteOrder, bytes, int], Audio]
DecoderBuilder = Callable[[], Tuple[Decoder, object]]

_registered_decoders: Dict[str, Decoder] = {}


def calculate_chunk_info(chunk: bytes, channels: int, sample_size: int) -> ChunkInfo:
    """Work out the chunk size of raw audio with the given layout."""
    if channels <= 0:
        raise DecoderError("channels has to be greater than 0")
    if sample_size <= 0:
        raise DecoderError("sample size has to be greater than 0")

    sample_len = channels * sample_size
    remainder = len(chunk) % sample_len
    if remainder:
        expected = len(chunk) + (sample_len - remainder)
        raise DecoderError(
            f"expected chunk to have a length of {expected}, but got {len(chunk)}"
        )
    return ChunkInfo(length=len(chunk) // sample_len, channels=channels)


def register_decoder(builder: DecoderBuilder) -> None:
    """Register the decoder a builder produces under its format's name."""
    decoder, raw_format = builder()
    key = str(raw_format)
    if key in _registered_decoders:
        raise DecoderError(f"{raw_format} has already been registered")
    _registered_decoders[key] = decoder


def new_decoder(format) -> Decoder:
    """Return the registered decoder for the given raw format."""
    try:
        return _registered_decoders[str(format)]
    except KeyError:
        raise DecoderError(f"{format} format is not supported") from None


def _build(raw_format: RawFormat, type_code: str, chunk_type) -> Tuple[Decoder, RawFormat]:
    native = np.dtype(type_code)

    def decode(byte_order: ByteOrder, chunk: bytes, channels: int) -> Audio:
        raw = bytes(chunk)
        info = calculate_chunk_info(raw, channels, raw_format.sample_size)
        wire = np.dtype(byte_order.value + type_code)
        samples = np.frombuffer(raw, dtype=wire).astype(native)
        if not raw_format.interleaved:
            samples = samples.reshape(channels, info.length)
        return chunk_type(data=samples, size=info)

    return decode, raw_format


def new_int16_interleaved_decoder() -> Tuple[Decoder, RawFormat]:
    """Build a decoder for interleaved 16-bit integer samples."""
    return _build(RawFormat(2, False, True), "i2", Int16Interleaved)


def new_int16_non_interleaved_decoder() -> Tuple[Decoder, RawFormat]:
    """Build a decoder for channel-after-channel 16-bit integer samples."""
    return _build(RawFormat(2, False, False), "i2", Int16NonInterleaved)


def new_float32_interleaved_decoder() -> Tuple[Decoder, RawFormat]:
    """Build a decoder for interleaved 32-bit float samples."""
    return _build(RawFormat(4, True, True), "f4", Float32Interleaved)


def new_float32_non_interleaved_decoder() -> Tuple[Decoder, RawFormat]:
    """Build a decoder for channel-after-channel 32-bit float samples."""
    return _build(RawFormat(4, True, False), "f4", Float32NonInterleaved)


for _builder in (
    new_int16_interleaved_decoder,
    new_int16_non_interleaved_decoder,
    new_float32_interleaved_decoder,
    new_float32_non_interleaved_decoder,
):
    register_decoder(_builder)