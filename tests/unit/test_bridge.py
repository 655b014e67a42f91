"""
Unit tests for RingMqttBridge: publish passes, location filtering and connectivity handling.
"""

from unittest.mock import AsyncMock

import pytest

from ring_mqtt.bridge import RingMqttBridge
from tests.helpers.fakes import Subject

LOCK_STATUS = "ring/loc1/lock/dev1/status"
CAMERA_STATUS = "ring/loc1/camera/cam1/status"
MODE_STATE = "ring/loc1/alarm_control_panel/loc1_mode_settings/mode/state"


class FakeApi:
    def __init__(self, locations):
        self.locations = locations
        self.on_refresh_token_updated = Subject()
        self.close = AsyncMock()

    async def get_locations(self):
        return list(self.locations)


@pytest.fixture
def api(location):
    return FakeApi([location])


@pytest.fixture
def make_bridge(api, channel, clock, config):
    def _make(**overrides):
        cfg = config.model_copy(update=overrides) if overrides else config
        return RingMqttBridge(cfg, api, channel, clock)

    return _make


class TestPublishPass:
    """Tests for RingMqttBridge.publish_pass"""

    @pytest.mark.asyncio
    async def test_publishes_hub_devices(self, make_bridge, location, make_device, channel):
        location.devices = [make_device("lock")]
        bridge = make_bridge()

        await bridge.publish_pass()

        assert channel.payloads(LOCK_STATUS) == ["online"]
        assert bridge.locations == {"loc1": location}

    @pytest.mark.asyncio
    async def test_location_filter(self, make_bridge, location, make_device, channel):
        location.devices = [make_device("lock")]
        bridge = make_bridge(location_ids=["other"])

        await bridge.publish_pass()

        assert channel.published == []
        assert bridge.locations == {}

    @pytest.mark.asyncio
    async def test_disconnected_location_skips_hub_devices(self, make_bridge, location, make_device, make_camera, channel):
        # Arrange
        location.devices = [make_device("lock")]
        _ = make_camera()
        location.connected = False
        bridge = make_bridge(enable_cameras=True)

        # Act
        await bridge.publish_pass()

        # Assert
        assert channel.payloads(LOCK_STATUS) == []
        assert channel.payloads(CAMERA_STATUS) == ["online"]

        await bridge.stop()

    @pytest.mark.asyncio
    async def test_cameras_need_enabling(self, make_bridge, make_camera, channel):
        _ = make_camera()
        bridge = make_bridge()

        await bridge.publish_pass()

        assert channel.payloads(CAMERA_STATUS) == []

    @pytest.mark.asyncio
    async def test_modes_panel_for_camera_only_location(self, make_bridge, location, channel):
        location.has_hubs = False
        location.supports_modes = True
        bridge = make_bridge(enable_modes=True)

        await bridge.publish_pass()
        await bridge.publish_pass()

        assert channel.payloads(MODE_STATE) == ["disarmed", "disarmed"]
        assert bridge.mode_device(location) is bridge.mode_device(location)

    @pytest.mark.asyncio
    async def test_provider_failure_is_contained(self, make_bridge, api, channel):
        api.get_locations = AsyncMock(side_effect=RuntimeError("unauthorized"))
        bridge = make_bridge()

        await bridge.publish_pass()

        assert channel.published == []


class TestConnectivity:
    """Tests for location and broker connectivity handling"""

    @pytest.mark.asyncio
    async def test_location_disconnect_and_reconnect(self, make_bridge, location, make_device, channel, clock):
        # Arrange
        location.devices = [make_device("lock")]
        bridge = make_bridge()
        await bridge.publish_pass()

        # Act
        location.connected = False
        location.on_connected.emit(False)
        await clock.advance(30)

        # Assert
        assert channel.payloads(LOCK_STATUS) == ["online", "offline"]

        location.connected = True
        location.on_connected.emit(True)
        await clock.settle()
        assert channel.payloads(LOCK_STATUS)[-1] == "online"

        await bridge.stop()

    @pytest.mark.asyncio
    async def test_brief_disconnect_is_not_published(self, make_bridge, location, make_device, channel, clock):
        location.devices = [make_device("lock")]
        bridge = make_bridge()
        await bridge.publish_pass()

        location.connected = False
        location.on_connected.emit(False)
        await clock.advance(5)
        location.connected = True
        await clock.advance(25)

        assert channel.payloads(LOCK_STATUS) == ["online"]

        await bridge.stop()

    @pytest.mark.asyncio
    async def test_mqtt_connect_starts_republish(self, make_bridge, location, make_device, channel, clock):
        location.devices = [make_device("lock")]
        bridge = make_bridge()

        await bridge.on_mqtt_connect(True)
        await clock.advance(4)
        assert channel.payloads(LOCK_STATUS) == []
        await clock.advance(1)

        assert channel.payloads(LOCK_STATUS) == ["online"]
        assert bridge.scheduler.remaining == 9

        await bridge.stop()

    @pytest.mark.asyncio
    async def test_stop_sets_devices_offline(self, make_bridge, api, location, make_device, channel):
        location.devices = [make_device("lock")]
        bridge = make_bridge()
        await bridge.publish_pass()

        await bridge.stop()

        assert channel.payloads(LOCK_STATUS) == ["online", "offline"]
        api.close.assert_awaited_once()
