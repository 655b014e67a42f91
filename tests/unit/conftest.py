"""
Shared fixtures for unit tests.
"""

from __future__ import annotations

from typing import Any

import pytest

from ring_mqtt.config import BridgeConfig
from tests.helpers.fakes import FakeCamera, FakeClock, FakeDevice, FakeLocation, RecordingChannel


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def config(tmp_path):
    return BridgeConfig(ring_topic="ring", tmp_dir=str(tmp_path), state_file=str(tmp_path / "state.json"))


@pytest.fixture
def location():
    return FakeLocation()


@pytest.fixture
def make_device(location):
    def _make(device_type: str = "sensor.contact", device_id: str = "dev1", **kwargs: Any) -> FakeDevice:
        return FakeDevice(location, device_id=device_id, device_type=device_type, **kwargs)

    return _make


@pytest.fixture
def make_camera(location):
    def _make(**kwargs: Any) -> FakeCamera:
        kwargs.setdefault("location_id", location.location_id)
        camera = FakeCamera(**kwargs)
        location.cameras.append(camera)
        return camera

    return _make
