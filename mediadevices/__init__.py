"""Audio chunk containers, raw PCM decoding, mono mixing, RTP samplers and track plumbing."""

__version__ = "0.1.0"
__all__ = ["audiobuffer", "decoder", "mixer", "sampler", "track", "wave"]