"""A reusable holder for copies of audio chunks."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

import numpy as np

from mediadevices.wave import (
    Audio,
    Float32Interleaved,
    Float32NonInterleaved,
    Int16Interleaved,
    Int16NonInterleaved,
)

_SUPPORTED = (Float32Interleaved, Float32NonInterleaved, Int16Interleaved, Int16NonInterleaved)


class UnsupportedFormatError(TypeError):
    """Raised when an audio chunk of an unknown format is stored."""


class AudioBuffer:
    """Stores a copy of an audio chunk, reusing memory between copies."""

    def __init__(self) -> None:
        self._current: Optional[Audio] = None

    def load(self) -> Optional[Audio]:
        """Return the currently owned audio copy."""
        return self._current

    def store_copy(self, src: Audio) -> None:
        """Copy src into the buffer, reusing the previous copy when it fits."""
        if not isinstance(src, _SUPPORTED):
            raise UnsupportedFormatError(f"Unsupported format: {type(src).__name__}")

        current = self._current
        if type(current) is type(src) and current.data.shape == src.data.shape:
            np.copyto(current.data, src.data)
            current.size = src.size
        else:
            self._current = replace(src, data=np.array(src.data, copy=True))