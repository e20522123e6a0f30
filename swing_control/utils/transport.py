"""
Websocket link to the detector server.

The server streams JSON messages of the form {"type": ..., "value": ...}:

- "detectorValue": one raw position sample (float) -> SwingDetector
- "frame": live preview frame (base64 JPEG) -> optional on_frame hook
- "config": the server's current settings, logged only

Settings go the other way as {"action": "updateConfig", "payload": {...}}.
Framing and reconnection are left to the `websockets` library and the caller.
"""

import asyncio
import json
from typing import Any, Callable, Optional

import websockets
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from websockets.exceptions import ConnectionClosed

from utils.detector import SwingDetector, SwingReading

DEFAULT_URL = "ws://localhost:9000"

HOST_FIELDS = ("camera", "display")


class DetectorMessage(BaseModel):
    type: str
    value: Any = None


class SampleMessage(BaseModel):
    value: float = Field(allow_inf_nan=False)


class HostSettings(BaseModel):
    """Presentation settings owned by the host, forwarded to the server as-is."""

    model_config = ConfigDict(validate_assignment=True)

    camera: int = Field(0, ge=0)
    display: bool = False


class DetectorClient:
    def __init__(
        self,
        detector: SwingDetector,
        url: str = DEFAULT_URL,
        on_frame: Optional[Callable[[str], None]] = None,
        settings: Optional[HostSettings] = None,
    ):
        self.detector = detector
        self.url = url
        self.on_frame = on_frame
        self.settings = settings if settings is not None else HostSettings()
        self._connection = None
        self._connected = asyncio.Event()

    @property
    def camera(self) -> int:
        return self.settings.camera

    @property
    def display(self) -> bool:
        return self.settings.display

    async def connect(self):
        logger.info(f"Connecting to detector server at {self.url}")
        self._connection = await websockets.connect(self.url)
        self._connected.set()
        logger.success("Detector server connected.")

    async def wait_connection(self):
        await self._connected.wait()

    async def close(self):
        if self._connection is not None:
            await self._connection.close()
        self._connection = None
        self._connected.clear()

    async def send(self, data: dict):
        if self._connection is None:
            raise RuntimeError("Not connected to the detector server. Call connect() first.")
        data.setdefault("payload", {})
        await self._connection.send(json.dumps(data))

    async def update_config(self, **fields):
        """
        Apply settings locally, then push them to the detector server.
        Detector tunables are validated by DetectorConfig; an invalid value
        raises ValidationError and nothing is sent.
        """
        host = {k: v for k, v in fields.items() if k in HOST_FIELDS}
        tunables = {k: v for k, v in fields.items() if k not in HOST_FIELDS}

        if host:
            HostSettings.model_validate({**self.settings.model_dump(), **host})
        if tunables:
            self.detector.config.update(**tunables)
        for name, value in host.items():
            setattr(self.settings, name, value)

        payload = {}
        for name in fields:
            source = self.settings if name in HOST_FIELDS else self.detector.config
            payload[name] = getattr(source, name)
        logger.debug(f"updateConfig {payload}")
        await self.send({"action": "updateConfig", "payload": payload})

    async def set_camera(self, index: int):
        await self.update_config(camera=int(index))

    async def set_display(self, enabled: bool):
        await self.update_config(display=bool(enabled))

    def handle_message(self, message) -> Optional[SwingReading]:
        """Dispatch one raw websocket message. Bad messages are logged and dropped."""
        try:
            msg = DetectorMessage.model_validate(json.loads(message))
        except (ValidationError, json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Failed to parse detector message: {e}. Message: {str(message)[:150]}")
            return None

        if msg.type == "detectorValue":
            try:
                sample = SampleMessage(value=msg.value)
            except ValidationError:
                logger.warning(f"Rejected detector value: {msg.value!r}")
                return None
            return self.detector.process_sample(sample.value)

        if msg.type == "frame":
            if self.on_frame is not None:
                self.on_frame(msg.value)
            return None

        if msg.type == "config":
            logger.info(f"new config: {msg.value}")
            return None

        logger.debug(f"Ignoring message type '{msg.type}'")
        return None

    async def run(self):
        """Receive until the server closes the connection."""
        if self._connection is None:
            await self.connect()
        try:
            async for message in self._connection:
                self.handle_message(message)
        except ConnectionClosed as e:
            logger.warning(f"Detector server connection closed: {e}")
        finally:
            self._connected.clear()
