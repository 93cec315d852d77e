"""Audio samples, sample formats and in-memory audio chunks."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, ClassVar, Union

import numpy as np

_FLOAT_SCALE = 0x100000000


def _wrap_signed(value: int, bits: int) -> int:
    """Wrap an integer into the signed range of the given bit width."""
    half = 1 << (bits - 1)
    return ((value + half) & ((1 << bits) - 1)) - half


def _to_float32(value: float) -> float:
    return float(np.float32(value))


@dataclass(frozen=True)
class ChunkInfo:
    """Size of an audio chunk: samples per channel, channel count and rate."""

    length: int = 0
    channels: int = 0
    sampling_rate: int = 0


@dataclass(frozen=True)
class Int16Sample:
    """A 16-bit signed integer audio sample."""

    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _wrap_signed(int(self.value), 16))

    def to_int(self) -> int:
        """Return the sample level as a 64-bit signed value."""
        return self.value << 16


@dataclass(frozen=True)
class Float32Sample:
    """A 32-bit floating point audio sample."""

    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _to_float32(self.value))

    def to_int(self) -> int:
        """Return the sample level as a 64-bit signed value."""
        return int(self.value * _FLOAT_SCALE)


@dataclass(frozen=True)
class Int64Sample:
    """A 64-bit signed integer audio sample."""

    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _wrap_signed(int(self.value), 64))

    def to_int(self) -> int:
        """Return the sample level as a 64-bit signed value."""
        return self.value


Sample = Union[Int16Sample, Float32Sample, Int64Sample]


@dataclass(frozen=True)
class SampleFormat:
    """Converts any sample into a sample of its own format."""

    name: str
    converter: Callable[[Sample], Sample]

    def convert(self, sample: Sample) -> Sample:
        return self.converter(sample)


def _to_int16(sample: Sample) -> Sample:
    if isinstance(sample, Int16Sample):
        return sample
    return Int16Sample(sample.to_int() >> 16)


def _to_float32_sample(sample: Sample) -> Sample:
    if isinstance(sample, Float32Sample):
        return sample
    return Float32Sample(_to_float32(sample.to_int()) / _FLOAT_SCALE)


INT16_SAMPLE_FORMAT = SampleFormat("Int16", _to_int16)
FLOAT32_SAMPLE_FORMAT = SampleFormat("Float32", _to_float32_sample)


@dataclass(eq=False)
class _AudioChunk:
    data: np.ndarray
    size: ChunkInfo = field(default_factory=ChunkInfo)

    sample_format: ClassVar[SampleFormat]
    _dtype: ClassVar[type]
    _ndim: ClassVar[int]

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        self.data = np.asarray(self.data, dtype=self._dtype)
        if self.data.ndim != self._ndim:
            raise ValueError(f"audio data must be {self._ndim}-dimensional")

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return (
            self.size == other.size
            and self.data.shape == other.data.shape
            and bool(np.array_equal(self.data, other.data))
        )

    def _check_range(self, offset_samples: int, n_samples: int) -> None:
        if offset_samples < 0 or n_samples < 0 or offset_samples + n_samples > self.size.length:
            raise IndexError(
                f"sub audio [{offset_samples}:{offset_samples + n_samples}] "
                f"out of range for length {self.size.length}"
            )

    def _index(self, i: int, ch: int):
        raise NotImplementedError

    def _view(self, offset_samples: int, n_samples: int) -> np.ndarray:
        raise NotImplementedError

    @classmethod
    def _shape(cls, size: ChunkInfo):
        raise NotImplementedError

    def _get(self, i: int, ch: int):
        return self.data[self._index(i, ch)].item()

    def _put(self, i: int, ch: int, value) -> None:
        self.data[self._index(i, ch)] = value

    def _sub(self, offset_samples: int, n_samples: int):
        self._check_range(offset_samples, n_samples)
        view = self._view(offset_samples, n_samples)
        return replace(self, data=view, size=replace(self.size, length=n_samples))


@dataclass(eq=False)
class _Interleaved(_AudioChunk):
    _ndim: ClassVar[int] = 1

    @classmethod
    def _shape(cls, size: ChunkInfo):
        return size.channels * size.length

    def _index(self, i: int, ch: int):
        return i * self.size.channels + ch

    def _view(self, offset_samples: int, n_samples: int) -> np.ndarray:
        channels = self.size.channels
        start = offset_samples * channels
        return self.data[start : start + n_samples * channels]


@dataclass(eq=False)
class _NonInterleaved(_AudioChunk):
    _ndim: ClassVar[int] = 2

    @classmethod
    def _shape(cls, size: ChunkInfo):
        return (size.channels, size.length)

    def _index(self, i: int, ch: int):
        return (ch, i)

    def _view(self, offset_samples: int, n_samples: int) -> np.ndarray:
        return self.data[:, offset_samples : offset_samples + n_samples]


@dataclass(eq=False)
class Int16Interleaved(_Interleaved):
    """Multi-channel 16-bit audio with channels interleaved."""

    sample_format: ClassVar[SampleFormat] = INT16_SAMPLE_FORMAT
    _dtype: ClassVar[type] = np.int16

    @classmethod
    def zeros(cls, size: ChunkInfo) -> "Int16Interleaved":
        """Create a silent chunk of the given size."""
        return cls(np.zeros(cls._shape(size), dtype=cls._dtype), size)

    def at(self, i: int, ch: int) -> Int16Sample:
        """Return the sample at position i of channel ch."""
        return Int16Sample(self._get(i, ch))

    def set(self, i: int, ch: int, sample: Sample) -> None:
        """Store a sample of any format, converting it to 16-bit."""
        self._put(i, ch, INT16_SAMPLE_FORMAT.convert(sample).value)

    def set_int16(self, i: int, ch: int, sample: Int16Sample) -> None:
        self._put(i, ch, sample.value)

    def sub_audio(self, offset_samples: int, n_samples: int) -> "Int16Interleaved":
        """Return part of the audio, sharing the underlying buffer."""
        return self._sub(offset_samples, n_samples)


@dataclass(eq=False)
class Int16NonInterleaved(_NonInterleaved):
    """Multi-channel 16-bit audio with one array per channel."""

    sample_format: ClassVar[SampleFormat] = INT16_SAMPLE_FORMAT
    _dtype: ClassVar[type] = np.int16

    @classmethod
    def zeros(cls, size: ChunkInfo) -> "Int16NonInterleaved":
        """Create a silent chunk of the given size."""
        return cls(np.zeros(cls._shape(size), dtype=cls._dtype), size)

    def at(self, i: int, ch: int) -> Int16Sample:
        """Return the sample at position i of channel ch."""
        return Int16Sample(self._get(i, ch))

    def set(self, i: int, ch: int, sample: Sample) -> None:
        """Store a sample of any format, converting it to 16-bit."""
        self._put(i, ch, INT16_SAMPLE_FORMAT.convert(sample).value)

    def set_int16(self, i: int, ch: int, sample: Int16Sample) -> None:
        self._put(i, ch, sample.value)

    def sub_audio(self, offset_samples: int, n_samples: int) -> "Int16NonInterleaved":
        """Return part of the audio, sharing the underlying buffer."""
        return self._sub(offset_samples, n_samples)


@dataclass(eq=False)
class Float32Interleaved(_Interleaved):
    """Multi-channel 32-bit float audio with channels interleaved."""

    sample_format: ClassVar[SampleFormat] = FLOAT32_SAMPLE_FORMAT
    _dtype: ClassVar[type] = np.float32

    @classmethod
    def zeros(cls, size: ChunkInfo) -> "Float32Interleaved":
        """Create a silent chunk of the given size."""
        return cls(np.zeros(cls._shape(size), dtype=cls._dtype), size)

    def at(self, i: int, ch: int) -> Float32Sample:
        """Return the sample at position i of channel ch."""
        return Float32Sample(self._get(i, ch))

    def set(self, i: int, ch: int, sample: Sample) -> None:
        """Store a sample of any format, converting it to 32-bit float."""
        self._put(i, ch, FLOAT32_SAMPLE_FORMAT.convert(sample).value)

    def set_float32(self, i: int, ch: int, sample: Float32Sample) -> None:
        self._put(i, ch, sample.value)

    def sub_audio(self, offset_samples: int, n_samples: int) -> "Float32Interleaved":
        """Return part of the audio, sharing the underlying buffer."""
        return self._sub(offset_samples, n_samples)


@dataclass(eq=False)
class Float32NonInterleaved(_NonInterleaved):
    """Multi-channel 32-bit float audio with one array per channel."""

    sample_format: ClassVar[SampleFormat] = FLOAT32_SAMPLE_FORMAT
    _dtype: ClassVar[type] = np.float32

    @classmethod
    def zeros(cls, size: ChunkInfo) -> "Float32NonInterleaved":
        """Create a silent chunk of the given size."""
        return cls(np.zeros(cls._shape(size), dtype=cls._dtype), size)

    def at(self, i: int, ch: int) -> Float32Sample:
        """Return the sample at position i of channel ch."""
        return Float32Sample(self._get(i, ch))

    def set(self, i: int, ch: int, sample: Sample) -> None:
        """Store a sample of any format, converting it to 32-bit float."""
        self._put(i, ch, FLOAT32_SAMPLE_FORMAT.convert(sample).value)

    def set_float32(self, i: int, ch: int, sample: Float32Sample) -> None:
        self._put(i, ch, sample.value)

    def sub_audio(self, offset_samples: int, n_samples: int) -> "Float32NonInterleaved":
        """Return part of the audio, sharing the underlying buffer."""
        return self._sub(offset_samples, n_samples)


Audio = Union[Int16Interleaved, Int16NonInterleaved, Float32Interleaved, Float32NonInterleaved]