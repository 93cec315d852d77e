import queue
import threading
import uuid

import pytest

from mediadevices.track import (
    BaseTrack,
    MediaDeviceType,
    RTCPError,
    RTPCodecType,
    RTPReadCloser,
    parse_rtcp_feedback,
)

ERR_EXPECTED = RuntimeError("an error")

PLI = bytes([0x81, 0xCE, 0x00, 0x02, 0x00, 0x00, 0x00, 0x00, 0x4B, 0xC4, 0xFC, 0xB4])
FIR = bytes(
    [
        0x84, 0xCE, 0x00, 0x04,
        0x00, 0x00, 0x00, 0x00,
        0x4B, 0xC4, 0xFC, 0xB4,
        0x12, 0x34, 0x56, 0x78,
        0x42, 0x00, 0x00, 0x00,
    ]
)


class FakeRTCPReader:
    def __init__(self):
        self.returns = queue.Queue()
        self.end = threading.Event()

    def read(self, size):
        while True:
            if self.end.is_set():
                raise EOFError
            try:
                data = self.returns.get(timeout=0.005)
            except queue.Empty:
                continue
            if len(data) > size:
                raise ValueError("short buffer")
            return data


class FakeKeyFrameController:
    def __init__(self):
        self.called = queue.Queue()

    def force_key_frame(self):
        self.called.put(True)


def test_on_ended_error_after_register():
    track = BaseTrack()
    called = queue.Queue()
    track.on_ended(called.put)
    assert called.empty()

    track.on_error(ERR_EXPECTED)
    assert called.get(timeout=1) is ERR_EXPECTED


def test_on_ended_error_before_register():
    track = BaseTrack()
    track.on_error(ERR_EXPECTED)

    called = queue.Queue()
    track.on_ended(called.put)
    assert called.get(timeout=1) is ERR_EXPECTED


def test_on_ended_error_from_other_thread_while_locked():
    track = BaseTrack()
    called = queue.Queue()
    track.on_ended(called.put)
    lock = threading.Lock()

    def bind():
        with lock:
            track.on_error(ERR_EXPECTED)

    worker = threading.Thread(target=bind)
    worker.start()
    worker.join(timeout=1)
    assert called.get(timeout=1) is ERR_EXPECTED


def test_on_ended_handler_called_only_once():
    track = BaseTrack()
    calls = []
    track.on_ended(calls.append)
    track.on_error(ERR_EXPECTED)
    track.on_error(ValueError("second"))
    track.on_ended(calls.append)
    assert calls == [ERR_EXPECTED]


def test_rtcp_loop_stops():
    track = BaseTrack()
    reader = FakeRTCPReader()
    stop = threading.Event()
    worker = threading.Thread(
        target=track.rtcp_read_loop, args=(reader, FakeKeyFrameController(), stop)
    )
    worker.start()
    stop.set()
    reader.end.set()
    worker.join(timeout=1)
    assert not worker.is_alive()


@pytest.mark.parametrize("packet", [PLI, FIR], ids=["PLI", "FIR"])
def test_rtcp_loop_forces_key_frame(packet):
    track = BaseTrack()
    reader = FakeRTCPReader()
    controller = FakeKeyFrameController()
    stop = threading.Event()
    worker = threading.Thread(target=track.rtcp_read_loop, args=(reader, controller, stop))
    worker.start()
    try:
        reader.returns.put(packet)
        assert controller.called.get(timeout=1) is True
    finally:
        stop.set()
        reader.end.set()
        worker.join(timeout=1)
    assert not worker.is_alive()


def test_rtcp_loop_skips_garbage_then_handles_pli():
    track = BaseTrack()
    reader = FakeRTCPReader()
    controller = FakeKeyFrameController()
    stop = threading.Event()
    worker = threading.Thread(target=track.rtcp_read_loop, args=(reader, controller, stop))
    worker.start()
    try:
        reader.returns.put(b"\x00\x01")
        reader.returns.put(PLI)
        assert controller.called.get(timeout=1) is True
        assert controller.called.empty()
        assert worker.is_alive()
    finally:
        stop.set()
        reader.end.set()
        worker.join(timeout=1)
    assert not worker.is_alive()


def test_parse_pli():
    (packet,) = parse_rtcp_feedback(PLI)
    assert packet.is_picture_loss
    assert not packet.is_full_intra_request
    assert packet.sender_ssrc == 0
    assert packet.media_ssrc == 0x4BC4FCB4


def test_parse_fir():
    (packet,) = parse_rtcp_feedback(FIR)
    assert packet.is_full_intra_request
    assert packet.requests_key_frame
    assert packet.media_ssrc == 0x4BC4FCB4


def test_parse_compound():
    packets = parse_rtcp_feedback(PLI + FIR)
    assert [p.fmt for p in packets] == [1, 4]


@pytest.mark.parametrize(
    "data",
    [b"", b"\x81\xce", bytes([0x41, 0xCE, 0x00, 0x02]) + bytes(8), PLI[:-4]],
)
def test_parse_invalid(data):
    with pytest.raises(RTCPError):
        parse_rtcp_feedback(data)


def test_kind():
    assert BaseTrack(kind=MediaDeviceType.VIDEO_INPUT).kind() is RTPCodecType.VIDEO
    assert BaseTrack(kind=MediaDeviceType.AUDIO_INPUT).kind() is RTPCodecType.AUDIO
    with pytest.raises(ValueError):
        BaseTrack().kind()


def test_stream_id_and_rid():
    track = BaseTrack()
    first = track.stream_id()
    assert str(uuid.UUID(first)) == first
    assert track.stream_id() != first
    assert track.rid() == ""


def test_rtp_read_closer_delegates():
    closed = []
    released = []
    reader = RTPReadCloser(
        read_fn=lambda: (["pkt"], lambda: released.append(True)),
        close_fn=lambda: closed.append(True),
        controller_fn=lambda: "controller",
    )
    with reader as r:
        packets, release = r.read()
        release()
        assert packets == ["pkt"]
        assert r.controller() == "controller"
    assert released == [True]
    assert closed == [True]