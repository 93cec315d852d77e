"""Channel mixers for audio chunks."""

from __future__ import annotations

from mediadevices.wave import Audio, Int64Sample


class MixError(ValueError):
    """Raised when two audio chunks cannot be mixed."""


class MonoMixer:
    """Mixes all source channels into one, written to every destination channel."""

    def mix(self, dst: Audio, src: Audio) -> None:
        if dst.size.length != src.size.length:
            raise MixError("buffer size mismatch")
        if not callable(getattr(dst, "set", None)):
            raise MixError("destination buffer is not settable")

        channels = src.size.channels
        if channels <= 0:
            raise MixError("source has no channels")

        for i in range(src.size.length):
            total = sum(src.at(i, ch).to_int() for ch in range(channels))
            magnitude = abs(total) // channels
            mean = -magnitude if total < 0 else magnitude
            for ch in range(dst.size.channels):
                dst.set(i, ch, Int64Sample(mean))