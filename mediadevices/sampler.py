"""Samplers that give the RTP duration, in clock ticks, of each media sample."""

from __future__ import annotations

import math
import time
from datetime import timedelta
from typing import Callable, Union

Sampler = Callable[[], int]

_UINT32_MASK = 0xFFFFFFFF


def _round_ticks(value: float) -> int:
    """Round half away from zero and wrap into an unsigned 32-bit value."""
    rounded = math.floor(abs(value) + 0.5)
    return int(math.copysign(rounded, value)) & _UINT32_MASK


def new_video_sampler(
    clock_rate: int, clock: Callable[[], float] = time.monotonic
) -> Sampler:
    """Sampler whose duration is the real time elapsed since the previous call."""
    rate = float(clock_rate)
    last = clock()

    def sample() -> int:
        nonlocal last
        now = clock()
        ticks = _round_ticks(rate * (now - last))
        last = now
        return ticks

    return sample


def new_audio_sampler(clock_rate: int, latency: Union[timedelta, float]) -> Sampler:
    """Sampler whose duration is fixed by the codec latency."""
    seconds = latency.total_seconds() if isinstance(latency, timedelta) else float(latency)
    ticks = _round_ticks(float(clock_rate) * seconds)
    return lambda: ticks