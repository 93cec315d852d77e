"""Media tracks: error reporting, RTCP key-frame feedback and RTP readers."""

from __future__ import annotations

import enum
import logging
import struct
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

RTP_OUTBOUND_MTU = 1200
RTCP_INBOUND_MTU = 1500

_RTCP_VERSION = 2
_RTCP_HEADER_SIZE = 4
_PT_RTPFB = 205
_PT_PSFB = 206
_FMT_PLI = 1
_FMT_FIR = 4

Release = Callable[[], None]


class MediaDeviceType(enum.Enum):
    """Kind of capture device a track comes from."""

    VIDEO_INPUT = "videoinput"
    AUDIO_INPUT = "audioinput"


class RTPCodecType(enum.Enum):
    """Media kind as seen by an RTP session."""

    AUDIO = "audio"
    VIDEO = "video"


class RTCPError(ValueError):
    """Raised for RTCP data that cannot be parsed."""


@dataclass(frozen=True)
class RTCPFeedback:
    """One packet of a compound RTCP datagram."""

    packet_type: int
    fmt: int
    payload: bytes

    @property
    def sender_ssrc(self) -> Optional[int]:
        if len(self.payload) < 4:
            return None
        return struct.unpack_from(">I", self.payload, 0)[0]

    @property
    def media_ssrc(self) -> Optional[int]:
        if len(self.payload) < 8:
            return None
        return struct.unpack_from(">I", self.payload, 4)[0]

    @property
    def is_picture_loss(self) -> bool:
        return self.packet_type == _PT_PSFB and self.fmt == _FMT_PLI

    @property
    def is_full_intra_request(self) -> bool:
        return self.packet_type == _PT_PSFB and self.fmt == _FMT_FIR

    @property
    def requests_key_frame(self) -> bool:
        """True for packets asking the sender to produce a key frame."""
        return self.is_picture_loss or self.is_full_intra_request


def parse_rtcp_feedback(data: bytes) -> List[RTCPFeedback]:
    """Split a compound RTCP datagram into its packets."""
    data = bytes(data)
    if not data:
        raise RTCPError("empty rtcp packet")

    packets: List[RTCPFeedback] = []
    offset = 0
    while offset < len(data):
        if len(data) - offset < _RTCP_HEADER_SIZE:
            raise RTCPError("rtcp header is too short")
        first, packet_type, length = struct.unpack_from(">BBH", data, offset)
        version = first >> 6
        if version != _RTCP_VERSION:
            raise RTCPError(f"invalid rtcp version {version}")
        has_padding = bool((first >> 5) & 1)
        fmt = first & 0x1F

        total = (length + 1) * 4
        end = offset + total
        if end > len(data):
            raise RTCPError("rtcp packet length exceeds the datagram")
        payload = data[offset + _RTCP_HEADER_SIZE : end]

        if has_padding:
            pad = payload[-1] if payload else 0
            if pad == 0 or pad > len(payload):
                raise RTCPError("invalid rtcp padding")
            payload = payload[:-pad]

        if packet_type in (_PT_PSFB, _PT_RTPFB) and len(payload) < 8:
            raise RTCPError("feedback packet is too short")
        if packet_type == _PT_PSFB and fmt == _FMT_FIR and (len(payload) - 8) % 8:
            raise RTCPError("malformed full intra request")

        packets.append(RTCPFeedback(packet_type, fmt, payload))
        offset = end
    return packets


class RTCPReader(Protocol):
    def read(self, size: int) -> bytes:
        """Return one RTCP datagram of at most size bytes; raise EOFError at the end."""


class KeyFrameController(Protocol):
    def force_key_frame(self) -> None:
        """Ask the encoder for a key frame."""


class RTPReadCloser:
    """Reads packetized RTP from an encoder until closed."""

    def __init__(
        self,
        read_fn: Callable[[], Tuple[List[Any], Release]],
        close_fn: Callable[[], None],
        controller_fn: Callable[[], Any],
    ) -> None:
        self._read_fn = read_fn
        self._close_fn = close_fn
        self._controller_fn = controller_fn

    def read(self) -> Tuple[List[Any], Release]:
        """Return the next packets and a function that releases them."""
        return self._read_fn()

    def close(self) -> None:
        self._close_fn()

    def controller(self) -> Any:
        """Return the encoder controller behind this reader."""
        return self._controller_fn()

    def __enter__(self) -> "RTPReadCloser":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class BaseTrack:
    """State shared by media tracks: the source, its kind and end-of-track reporting."""

    def __init__(
        self,
        source: Any = None,
        kind: Optional[MediaDeviceType] = None,
        selector: Any = None,
    ) -> None:
        self.source = source
        self._kind = kind
        self.selector = selector
        self._err: Optional[BaseException] = None
        self._handler: Optional[Callable[[BaseException], None]] = None
        self._err_lock = threading.Lock()
        self._end_lock = threading.Lock()
        self._ended = False

    def id(self) -> str:
        return self.source.id()

    def close(self) -> None:
        self.source.close()

    def kind(self) -> RTPCodecType:
        """Return the RTP media kind of this track."""
        if self._kind is MediaDeviceType.VIDEO_INPUT:
            return RTPCodecType.VIDEO
        if self._kind is MediaDeviceType.AUDIO_INPUT:
            return RTPCodecType.AUDIO
        raise ValueError("invalid track kind: only support VideoInput and AudioInput")

    def stream_id(self) -> str:
        """Return a fresh random stream identifier."""
        return str(uuid.uuid4())

    def rid(self) -> str:
        """RTP stream id; only relevant for simulcast."""
        return ""

    def on_ended(self, handler: Optional[Callable[[BaseException], None]]) -> None:
        """Register the end handler; call it at once if the track already failed."""
        with self._err_lock:
            self._handler = handler
            err = self._err
        if err is not None and handler is not None:
            self._end_once(handler, err)

    def on_error(self, err: BaseException) -> None:
        """Record an error and report it to the end handler, once."""
        with self._err_lock:
            self._err = err
            handler = self._handler
        if handler is not None:
            self._end_once(handler, err)

    def _end_once(self, handler: Callable[[BaseException], None], err: BaseException) -> None:
        with self._end_lock:
            if self._ended:
                return
            self._ended = True
        handler(err)

    def rtcp_read_loop(
        self,
        reader: RTCPReader,
        key_frame_controller: KeyFrameController,
        stop: threading.Event,
    ) -> None:
        """Read RTCP until stopped or EOF, forcing a key frame on PLI or FIR."""
        while not stop.is_set():
            try:
                data = reader.read(RTCP_INBOUND_MTU)
            except EOFError:
                return
            except Exception as exc:  # noqa: BLE001 - keep reading after transient errors
                logger.warning("failed to read rtcp packet: %s", exc)
                continue

            try:
                packets = parse_rtcp_feedback(data)
            except RTCPError as exc:
                logger.warning("failed to unmarshal rtcp packet: %s", exc)
                continue

            for packet in packets:
                if not packet.requests_key_frame:
                    continue
                try:
                    key_frame_controller.force_key_frame()
                except Exception as exc:  # noqa: BLE001
                    logger.warning("failed to force key frame: %s", exc)
                    break