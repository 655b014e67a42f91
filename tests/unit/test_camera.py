"""
Unit tests for the camera handler: discovery, dings, polled state, snapshots and commands.
"""

import json

import pytest

from ring_mqtt.devices import Camera
from ring_mqtt.structs import AvailabilityState, Ding, SnapshotMode

BASE = "ring/loc1/camera/cam1"


def motion_ding(clock, expires_in=180):
    return Ding(id=1, kind="motion", now=clock.time(), expires_in=expires_in)


@pytest.fixture
def snapshot_config(config):
    def _make(mode):
        return config.model_copy(update={"snapshot_mode": mode})

    return _make


class TestCameraDiscovery:
    """Tests for Camera.init_camera_discovery_data"""

    @pytest.mark.asyncio
    async def test_doorbell_with_light_and_siren(self, channel, config, clock, make_camera):
        # Arrange
        camera = make_camera(is_doorbot=True, has_light=True, has_siren=True)
        handler = Camera(camera, channel, config, clock)

        # Act
        await handler.init_camera_discovery_data()
        await handler.publish_discovery_data()

        # Assert
        topics = channel.topics()
        assert "homeassistant/binary_sensor/loc1/cam1_motion/config" in topics
        assert "homeassistant/binary_sensor/loc1/cam1_ding/config" in topics
        assert "homeassistant/light/loc1/cam1_light/config" in topics
        assert "homeassistant/switch/loc1/cam1_siren/config" in topics
        assert f"{BASE}/light/command" in channel.subscribed
        assert f"{BASE}/siren/command" in channel.subscribed
        motion = json.loads(channel.payloads("homeassistant/binary_sensor/loc1/cam1_motion/config")[0])
        assert motion["device_class"] == "motion"
        assert motion["json_attributes_topic"] == f"{BASE}/motion/attributes"
        assert motion["device"]["mdl"] == "Stick Up Cam"

    @pytest.mark.asyncio
    async def test_wireless_info_sensor(self, channel, config, clock, make_camera):
        handler = Camera(make_camera(), channel, config, clock)

        await handler.init_camera_discovery_data()

        info = next(d for d in handler.discovery_data if d.unique_id == "cam1_info")
        assert info.message["unit_of_measurement"] == "RSSI"
        assert "wirelessSignal" in info.message["value_template"]

    @pytest.mark.asyncio
    async def test_wired_info_sensor(self, channel, config, clock, make_camera):
        camera = make_camera()
        camera.get_health.return_value = {"network_connection": "ethernet"}
        handler = Camera(camera, channel, config, clock)

        await handler.init_camera_discovery_data()

        info = next(d for d in handler.discovery_data if d.unique_id == "cam1_info")
        assert "unit_of_measurement" not in info.message
        assert "wiredNetwork" in info.message["value_template"]

    @pytest.mark.asyncio
    async def test_snapshot_entity_only_when_enabled(self, channel, config, clock, make_camera, snapshot_config):
        disabled = Camera(make_camera(), channel, config, clock)
        enabled = Camera(make_camera(), channel, snapshot_config(SnapshotMode.MOTION), clock)

        await disabled.init_camera_discovery_data()
        await enabled.init_camera_discovery_data()

        assert all(d.unique_id != "cam1_snapshot" for d in disabled.discovery_data)
        snapshot = next(d for d in enabled.discovery_data if d.unique_id == "cam1_snapshot")
        assert snapshot.message["topic"] == f"{BASE}/snapshot/image"
        assert f"{BASE}/snapshot/interval" in enabled.command_handlers


class TestCameraPublish:
    """Tests for Camera.publish and event handling"""

    @pytest.mark.asyncio
    async def test_first_publish(self, channel, config, clock, make_camera):
        # Arrange
        camera = make_camera()
        handler = Camera(camera, channel, config, clock)

        # Act
        await handler.publish()
        await clock.settle()

        # Assert
        assert channel.payloads(f"{BASE}/motion/state") == ["OFF"]
        assert channel.payloads(f"{BASE}/status") == ["online"]
        info = json.loads(channel.payloads(f"{BASE}/info/state")[0])
        assert info["wirelessSignal"] == -50
        camera.get_events.assert_awaited_once_with("motion", limit=1)

        await handler.stop()

    @pytest.mark.asyncio
    async def test_history_seeds_attributes(self, channel, config, clock, make_camera):
        camera = make_camera()
        camera.get_events.return_value = [
            {"created_at": "2023-11-14T22:00:00+00:00", "cv_properties": {"detection_type": "human"}},
        ]
        handler = Camera(camera, channel, config, clock)

        await handler.publish()

        attributes = json.loads(channel.payloads(f"{BASE}/motion/attributes")[0])
        assert attributes["lastMotion"] == 1699999200
        assert attributes["personDetected"] is True
        assert channel.payloads(f"{BASE}/motion/state") == ["OFF"]

        await handler.stop()

    @pytest.mark.asyncio
    async def test_motion_ding_on_then_off(self, channel, config, clock, make_camera):
        camera = make_camera()
        handler = Camera(camera, channel, config, clock)
        await handler.publish()

        camera.on_new_ding.emit(motion_ding(clock))
        await clock.settle()

        assert channel.payloads(f"{BASE}/motion/state") == ["OFF", "ON"]
        await clock.advance(180)
        assert channel.payloads(f"{BASE}/motion/state") == ["OFF", "ON", "OFF"]

        await handler.stop()

    @pytest.mark.asyncio
    async def test_unknown_ding_kind_is_ignored(self, channel, config, clock, make_camera):
        camera = make_camera()
        handler = Camera(camera, channel, config, clock)
        await handler.publish()

        camera.on_new_ding.emit(Ding(id=1, kind="on_demand", now=clock.time()))
        camera.on_new_ding.emit(Ding(id=2, kind="ding", now=clock.time()))
        await clock.settle()

        assert channel.payloads(f"{BASE}/motion/state") == ["OFF"]
        assert channel.payloads(f"{BASE}/ding/state") == []

        await handler.stop()

    @pytest.mark.asyncio
    async def test_polled_state_publishes_only_changes(self, channel, config, clock, make_camera):
        # Arrange
        camera = make_camera(has_light=True, data={"led_status": "on"})
        handler = Camera(camera, channel, config, clock)
        await handler.publish()

        # Act
        camera.on_data.emit(camera.data)
        await clock.settle()
        camera.data["led_status"] = "off"
        camera.on_data.emit(camera.data)
        await clock.settle()

        # Assert
        assert channel.payloads(f"{BASE}/light/state") == ["ON", "OFF"]

        await handler.stop()

    @pytest.mark.asyncio
    async def test_missed_polls_take_camera_offline(self, channel, config, clock, make_camera):
        camera = make_camera()
        handler = Camera(camera, channel, config, clock)
        await handler.publish()

        await clock.advance(60)
        assert handler.availability_state is AvailabilityState.OFFLINE

        camera.on_data.emit(camera.data)
        await clock.settle()

        assert handler.availability_state is AvailabilityState.ONLINE
        assert channel.payloads(f"{BASE}/status") == ["online", "offline", "online"]

        await handler.stop()

    @pytest.mark.asyncio
    async def test_motion_refreshes_snapshot(self, channel, clock, make_camera, snapshot_config):
        camera = make_camera()
        handler = Camera(camera, channel, snapshot_config(SnapshotMode.MOTION), clock)
        await handler.publish()
        await clock.settle()
        assert channel.payloads(f"{BASE}/snapshot/image") == [b"snapshot"]

        camera.on_new_ding.emit(motion_ding(clock))
        await clock.advance(1)

        assert channel.payloads(f"{BASE}/snapshot/image") == [b"snapshot", b"uncached"]
        assert json.loads(channel.payloads(f"{BASE}/snapshot/attributes")[-1]) == {"timestamp": round(clock.time())}

        await handler.stop()


class TestSnapshotInterval:
    """Tests for interval snapshot configuration"""

    def test_wired_camera_default(self, channel, clock, make_camera, snapshot_config):
        handler = Camera(make_camera(), channel, snapshot_config(SnapshotMode.INTERVAL), clock)

        assert handler.snapshot.state.interval == 30
        assert handler.snapshot.state.auto_interval is False

    def test_battery_camera_follows_lite_frequency(self, channel, clock, make_camera, snapshot_config):
        data = {"settings": {"lite_24x7": {"enabled": True, "frequency_secs": 120}}}
        handler = Camera(make_camera(has_battery=True, data=data), channel, snapshot_config(SnapshotMode.ALL), clock)

        assert handler.snapshot.state.interval == 120
        assert handler.snapshot.state.auto_interval is True

    def test_battery_camera_default(self, channel, clock, make_camera, snapshot_config):
        handler = Camera(make_camera(has_battery=True), channel, snapshot_config(SnapshotMode.INTERVAL), clock)

        assert handler.snapshot.state.interval == 600

    @pytest.mark.asyncio
    async def test_interval_command_enforces_minimum(self, channel, clock, make_camera, snapshot_config):
        # Arrange
        handler = Camera(make_camera(has_battery=True), channel, snapshot_config(SnapshotMode.INTERVAL), clock)
        await handler.init_camera_discovery_data()

        # Act
        await handler.process_command(f"{BASE}/snapshot/interval", "5")

        # Assert
        assert handler.snapshot.state.interval == 10
        assert handler.snapshot.state.auto_interval is False

        await handler.stop()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", ["abc", "nan", ""])
    async def test_interval_command_rejects_non_numbers(self, channel, clock, make_camera, snapshot_config, payload):
        handler = Camera(make_camera(), channel, snapshot_config(SnapshotMode.INTERVAL), clock)
        await handler.init_camera_discovery_data()

        await handler.process_command(f"{BASE}/snapshot/interval", payload)

        assert handler.snapshot.state.interval == 30

    @pytest.mark.asyncio
    async def test_interval_loop_publishes_snapshots(self, channel, clock, make_camera, snapshot_config):
        camera = make_camera()
        handler = Camera(camera, channel, snapshot_config(SnapshotMode.INTERVAL), clock)
        await handler.publish()
        await clock.settle()

        # keep the camera online across the interval
        await clock.advance(20)
        camera.on_data.emit(camera.data)
        await clock.advance(10)

        assert channel.payloads(f"{BASE}/snapshot/image") == [b"snapshot", b"snapshot"]

        await handler.stop()

    @pytest.mark.asyncio
    async def test_interval_loop_skips_while_motion_is_active(self, channel, clock, make_camera, snapshot_config):
        # Arrange
        camera = make_camera()
        handler = Camera(camera, channel, snapshot_config(SnapshotMode.INTERVAL), clock)
        await handler.publish()
        await clock.settle()
        camera.on_new_ding.emit(motion_ding(clock))

        # Act: polls keep the camera online past two interval ticks
        await clock.advance(20)
        camera.on_data.emit(camera.data)
        await clock.advance(20)
        camera.on_data.emit(camera.data)
        await clock.advance(20)

        # Assert
        assert handler.motion_active is True
        assert channel.payloads(f"{BASE}/snapshot/image") == [b"snapshot"]

        await handler.stop()

    @pytest.mark.asyncio
    async def test_interval_loop_skips_while_offline(self, channel, clock, make_camera, snapshot_config):
        camera = make_camera()
        handler = Camera(camera, channel, snapshot_config(SnapshotMode.INTERVAL), clock)
        await handler.publish()
        await clock.advance(60)
        assert handler.availability_state is AvailabilityState.OFFLINE
        captured = len(channel.payloads(f"{BASE}/snapshot/image"))

        await clock.advance(30)

        assert len(channel.payloads(f"{BASE}/snapshot/image")) == captured
        assert camera.get_snapshot.await_count == captured

        await handler.stop()


class TestCameraCommands:
    """Tests for light and siren commands"""

    @pytest.mark.asyncio
    async def test_light_command(self, channel, config, clock, make_camera):
        camera = make_camera(has_light=True)
        handler = Camera(camera, channel, config, clock)
        await handler.init_camera_discovery_data()

        await handler.process_command(f"{BASE}/light/command", "on")

        camera.set_light.assert_awaited_once_with(True)

    @pytest.mark.asyncio
    async def test_siren_command(self, channel, config, clock, make_camera):
        camera = make_camera(has_siren=True)
        handler = Camera(camera, channel, config, clock)
        await handler.init_camera_discovery_data()

        await handler.process_command(f"{BASE}/siren/command", "OFF")

        camera.set_siren.assert_awaited_once_with(False)

    @pytest.mark.asyncio
    async def test_invalid_light_command_is_ignored(self, channel, config, clock, make_camera):
        camera = make_camera(has_light=True)
        handler = Camera(camera, channel, config, clock)
        await handler.init_camera_discovery_data()

        await handler.process_command(f"{BASE}/light/command", "blink")

        camera.set_light.assert_not_awaited()
