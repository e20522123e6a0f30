import asyncio
import json

import pytest
from pydantic import ValidationError

import utils.transport as transport
from utils.config import DetectorConfig
from utils.detector import SwingDetector
from utils.transport import DetectorClient, HostSettings


class FakeConnection:
    def __init__(self, messages=()):
        self.messages = list(messages)
        self.sent = []
        self.closed = False

    async def send(self, data):
        self.sent.append(json.loads(data))

    async def close(self):
        self.closed = True

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for m in self.messages:
            yield m


def make_client(on_frame=None, on_value=None):
    det = SwingDetector(DetectorConfig(swap=False, value_window=1, speed_window=1), on_value=on_value)
    return DetectorClient(det, on_frame=on_frame)


def sample(value):
    return json.dumps({"type": "detectorValue", "value": value})


def test_detector_value_reaches_detector():
    client = make_client()
    reading = client.handle_message(sample(-0.3))
    assert reading is not None
    assert reading.side == "front"
    assert reading.value == pytest.approx(-0.3)
    assert client.detector.previous_timestamp is not None


@pytest.mark.parametrize("message", [
    sample("abc"),
    sample(None),
    '{"type": "detectorValue", "value": NaN}',
    "not json",
    '["detectorValue", 0.3]',
    '{"value": 0.3}',
])
def test_bad_messages_are_dropped(message):
    client = make_client()
    assert client.handle_message(message) is None
    assert client.detector.previous_timestamp is None
    assert client.detector.previous_value is None


def test_frame_goes_to_hook():
    frames = []
    client = make_client(on_frame=frames.append)
    assert client.handle_message(json.dumps({"type": "frame", "value": "abcd"})) is None
    assert frames == ["abcd"]
    assert client.detector.previous_timestamp is None


def test_frame_without_hook_and_other_types_ignored():
    client = make_client()
    assert client.handle_message(json.dumps({"type": "frame", "value": "abcd"})) is None
    assert client.handle_message(json.dumps({"type": "config", "value": {"camera": 0}})) is None
    assert client.handle_message(json.dumps({"type": "hello"})) is None
    assert client.detector.previous_timestamp is None


def test_send_requires_connection():
    client = make_client()
    with pytest.raises(RuntimeError):
        asyncio.run(client.send({"action": "ping"}))


def test_send_fills_payload():
    client = make_client()
    conn = FakeConnection()
    client._connection = conn
    asyncio.run(client.send({"action": "ping"}))
    assert conn.sent == [{"action": "ping", "payload": {}}]


def test_update_config_applies_locally_and_pushes():
    client = make_client()
    conn = FakeConnection()
    client._connection = conn
    asyncio.run(client.update_config(inert_range=0.2, camera=1, swap=True))
    assert conn.sent == [{
        "action": "updateConfig",
        "payload": {"inert_range": 0.2, "camera": 1, "swap": True},
    }]
    assert client.detector.inert_range == pytest.approx(0.2)
    assert client.detector.swap is True
    assert client.camera == 1


def test_update_config_can_narrow_both_ranges():
    client = make_client()
    client._connection = FakeConnection()
    asyncio.run(client.update_config(inert_range=0.05, reset_range=0.02))
    assert client.detector.inert_range == pytest.approx(0.05)
    assert client.detector.reset_range == pytest.approx(0.02)


def test_invalid_update_is_not_sent():
    client = make_client()
    conn = FakeConnection()
    client._connection = conn
    with pytest.raises(ValidationError):
        asyncio.run(client.update_config(reset_range=0.5))
    with pytest.raises(ValidationError):
        asyncio.run(client.update_config(camera=-1))
    assert conn.sent == []
    assert client.detector.reset_range == pytest.approx(0.1)
    assert client.camera == 0


def test_camera_and_display_setters():
    client = DetectorClient(SwingDetector(), settings=HostSettings(camera=2))
    conn = FakeConnection()
    client._connection = conn
    asyncio.run(client.set_display(True))
    asyncio.run(client.set_camera(3))
    assert client.display is True
    assert client.camera == 3
    assert conn.sent == [
        {"action": "updateConfig", "payload": {"display": True}},
        {"action": "updateConfig", "payload": {"camera": 3}},
    ]


def test_run_processes_stream(monkeypatch):
    readings = []
    client = make_client(on_value=readings.append)
    conn = FakeConnection([sample(0.0), sample(0.3), "garbage", sample(0.18)])

    async def fake_connect(url):
        assert url == transport.DEFAULT_URL
        return conn

    monkeypatch.setattr(transport.websockets, "connect", fake_connect)

    async def go():
        await client.connect()
        await client.wait_connection()
        await client.run()
        await client.close()

    asyncio.run(go())
    assert [r.apogee for r in readings] == [None, None, "back"]
    assert conn.closed
