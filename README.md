# mediadevices

Building blocks for handling captured media in Python.

## Modules

- `mediadevices.wave`: audio chunk containers backed by numpy arrays
  (`Int16Interleaved`, `Int16NonInterleaved`, `Float32Interleaved`,
  `Float32NonInterleaved`), `ChunkInfo` (`length`, `channels`,
  `sampling_rate`), sample types (`Int16Sample`, `Float32Sample`,
  `Int64Sample`) and the sample formats `INT16_SAMPLE_FORMAT` and
  `FLOAT32_SAMPLE_FORMAT`, whose `convert` turns any sample into their own
  type. Containers offer `zeros(size)`, `at(i, ch)`, `set(i, ch, sample)`,
  typed setters (`set_int16`, `set_float32`) and `sub_audio(offset, n)`,
  which returns a view sharing the same memory.
- `mediadevices.audiobuffer`: `AudioBuffer`, whose `store_copy(src)` keeps an
  independent copy of a chunk (reusing the previous copy's memory when type
  and shape match) and whose `load()` returns it. Other chunk types raise
  `UnsupportedFormatError`.
- `mediadevices.decoder`: decoders for raw PCM bytes. `new_decoder(format)`
  looks one up by `RawFormat(sample_size, is_float, interleaved)`; a decoder
  is called as `decoder(byte_order, chunk, channels)` with a `ByteOrder`.
  `calculate_chunk_info` validates chunk length, channel count and sample
  size. Problems raise `DecoderError`. `register_decoder` adds a decoder
  from a builder returning `(decoder, format)`.
- `mediadevices.mixer`: `MonoMixer.mix(dst, src)` averages every source
  channel and writes the mean to each destination channel; mismatched
  lengths raise `MixError`.
- `mediadevices.sampler`: `new_video_sampler(clock_rate, clock)` returns the
  clock ticks elapsed since the previous call; `new_audio_sampler(clock_rate,
  latency)` returns a fixed tick count from a latency in seconds or a
  `timedelta`.
- `mediadevices.track`: `BaseTrack` with `kind()`, `stream_id()`, `rid()`,
  `on_ended(handler)` and `on_error(err)` (the handler is called at most
  once, immediately if the track already failed), plus `rtcp_read_loop`,
  which reads RTCP datagrams until a `threading.Event` is set or the reader
  raises `EOFError`, and calls `force_key_frame()` on picture loss (PLI) and
  full intra request (FIR) packets. `parse_rtcp_feedback` splits a compound
  RTCP datagram into `RTCPFeedback` packets or raises `RTCPError`.
  `RTPReadCloser` wraps read, close and controller functions and works as a
  context manager.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Example

```python
from mediadevices.decoder import ByteOrder, RawFormat, new_decoder
from mediadevices.mixer import MonoMixer
from mediadevices.wave import ChunkInfo, Int16Interleaved

decoder = new_decoder(RawFormat(sample_size=2, is_float=False, interleaved=True))
stereo = decoder(ByteOrder.LITTLE, bytes([1, 0, 3, 0, 5, 0, 7, 0]), 2)

mono = Int16Interleaved.zeros(ChunkInfo(length=stereo.size.length, channels=1))
MonoMixer().mix(mono, stereo)
print(mono.data.tolist())  # [2, 6]
```

## What this package does not do

It does not capture audio or video from devices, has no video or audio
encoders, and does not packetize media into RTP or bind tracks to a WebRTC
peer connection. `BaseTrack` and `RTPReadCloser` provide the shared track
state and reader shape; supplying sources, encoders and a transport is left
to the caller. There is no command-line program.