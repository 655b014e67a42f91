"""
Test doubles shared across the unit tests.

A virtual clock for timer-driven code, a recording MQTT channel and
lightweight stand-ins for the provider's locations, devices and cameras.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

START_TIME = 1_700_000_000.0


async def settle(rounds: int = 25) -> None:
    """Let every ready task run until they all block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """Virtual time: ``sleep`` parks the caller until ``advance`` moves past its wake time."""

    def __init__(self, start: float = START_TIME) -> None:
        self.now = start
        self._waiters: list[tuple[float, int, asyncio.Future[None]]] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self.now

    async def settle(self) -> None:
        await settle()

    async def sleep(self, seconds: float) -> None:
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._waiters, (self.now + max(seconds, 0), next(self._seq), fut))
        await fut

    @property
    def pending(self) -> int:
        return sum(1 for _, _, fut in self._waiters if not fut.done())

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await settle()
        while self._waiters and self._waiters[0][0] <= target:
            when, _, fut = heapq.heappop(self._waiters)
            self.now = max(self.now, when)
            if not fut.done():
                fut.set_result(None)
            await settle()
        self.now = target
        await settle()


class Subject:
    """Push event source with the provider's ``subscribe`` shape."""

    def __init__(self) -> None:
        self.callbacks: list[Callable[[Any], object]] = []

    def subscribe(self, callback: Callable[[Any], object]) -> None:
        self.callbacks.append(callback)

    def emit(self, value: Any) -> None:
        for callback in list(self.callbacks):
            callback(value)


class RecordingChannel:
    """MQTT channel that records every publish and subscribe."""

    def __init__(self) -> None:
        self.connected = True
        self.published: list[tuple[str, str | bytes, int, bool]] = []
        self.subscribed: list[str] = []

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def publish(self, topic: str, payload: str | bytes, qos: int = 1, retain: bool = False) -> bool:
        self.published.append((topic, payload, qos, retain))
        return True

    async def subscribe(self, topic: str) -> bool:
        self.subscribed.append(topic)
        return True

    def payloads(self, topic: str) -> list[str | bytes]:
        return [payload for t, payload, _, _ in self.published if t == topic]

    def topics(self) -> list[str]:
        return [t for t, _, _, _ in self.published]

    def clear(self) -> None:
        self.published.clear()


class FakeLocation:
    def __init__(self, location_id: str = "loc1", name: str = "Home", has_hubs: bool = True) -> None:
        self.location_id = location_id
        self.name = name
        self.has_hubs = has_hubs
        self.connected = True
        self.on_connected = Subject()
        self.on_location_mode = Subject()
        self.cameras: list[Any] = []
        self.devices: list[Any] = []
        self.supports_modes = False
        self.mode = "disarmed"
        self.set_location_mode = AsyncMock()
        self.set_alarm_mode = AsyncMock()
        self.set_light_group = AsyncMock()

    async def get_devices(self) -> list[Any]:
        return list(self.devices)

    async def supports_location_mode_switching(self) -> bool:
        return self.supports_modes

    async def get_location_mode(self) -> str:
        return self.mode


class FakeDevice:
    def __init__(
        self,
        location: FakeLocation,
        device_id: str = "dev1",
        device_type: str = "sensor.contact",
        name: str = "Front Door",
        data: dict[str, Any] | None = None,
    ) -> None:
        self.id = device_id
        self.name = name
        self.device_type = device_type
        self.data: dict[str, Any] = data if data is not None else {}
        self.location = location
        self.on_data = Subject()
        self.send_command = AsyncMock()
        self.set_info = AsyncMock()
        self.set_volume = AsyncMock()


class FakeCamera:
    is_camera = True

    def __init__(
        self,
        location_id: str = "loc1",
        camera_id: str = "cam1",
        name: str = "Driveway",
        *,
        is_doorbot: bool = False,
        has_light: bool = False,
        has_siren: bool = False,
        has_battery: bool = False,
        data: dict[str, Any] | None = None,
    ) -> None:
        self.id = camera_id
        self.name = name
        self.model = "Stick Up Cam"
        self.location_id = location_id
        self.data: dict[str, Any] = data if data is not None else {}
        self.is_doorbot = is_doorbot
        self.has_light = has_light
        self.has_siren = has_siren
        self.has_battery = has_battery
        self.operating_on_battery = has_battery
        self.snapshots_are_blocked = False
        self.on_data = Subject()
        self.on_new_ding = Subject()
        self.get_events = AsyncMock(return_value=[])
        self.get_health = AsyncMock(return_value={"network_connection": "wifi", "latest_signal_strength": -50})
        self.get_snapshot = AsyncMock(return_value=b"snapshot")
        self.request_snapshot_update = AsyncMock()
        self.get_uncached_snapshot = AsyncMock(return_value=b"uncached")
        self.stream_video = AsyncMock(side_effect=RuntimeError("no stream"))
        self.set_light = AsyncMock()
        self.set_siren = AsyncMock()
