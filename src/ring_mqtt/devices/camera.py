"""Camera and doorbell handler.

Cameras are not attached to the location's realtime connection; their
availability follows the polling heartbeat instead. Motion and doorbell
dings are tracked per kind, and snapshots are refreshed on motion and/or on
a fixed interval depending on the configured snapshot mode.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from ring_mqtt.availability import HeartbeatMonitor
from ring_mqtt.const import (
    CAMERA_HEALTH_OFFLINE_INTERVAL,
    CAMERA_HEALTH_ONLINE_INTERVAL,
    DEFAULT_BATTERY_SNAPSHOT_INTERVAL,
    DEFAULT_WIRED_SNAPSHOT_INTERVAL,
    MIN_SNAPSHOT_INTERVAL,
)
from ring_mqtt.devices.base_device import RingDevice
from ring_mqtt.events import DingTracker
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.mqtt.discovery import device_block
from ring_mqtt.snapshot import SnapshotEngine
from ring_mqtt.structs import AvailabilityState, Ding, DingKind
from ring_mqtt.utils import decode_payload, parse_on_off

if TYPE_CHECKING:
    from ring_mqtt.config import BridgeConfig
    from ring_mqtt.structs import ClockProtocol, MqttChannelProtocol, RingCameraProtocol

logger = get_logger(__name__)

HEALTH_TIMEOUT = 5
DING_NAMES = {DingKind.MOTION: "Motion", DingKind.DING: "Ding"}


def _event_time(created_at: Any) -> float | None:
    """History events carry ``created_at`` as an ISO string or epoch seconds."""
    if isinstance(created_at, (int, float)):
        return float(created_at)
    if isinstance(created_at, str):
        try:
            return datetime.fromisoformat(created_at).timestamp()
        except ValueError:
            return None
    return None


class Camera(RingDevice):
    component = "camera"
    model_name = "Ring Camera"
    uses_location_connection = False

    def __init__(
        self,
        camera: RingCameraProtocol,
        channel: MqttChannelProtocol,
        config: BridgeConfig,
        clock: ClockProtocol,
    ) -> None:
        super().__init__(camera.location_id, str(camera.id), camera.name, channel, config, clock)
        self.camera: RingCameraProtocol = camera
        self.heartbeat = HeartbeatMonitor(self, clock)
        self.snapshot = SnapshotEngine(camera, clock, config.tmp_dir, config.ffmpeg_path)

        self.dings: dict[DingKind, DingTracker] = {}
        kinds = [DingKind.MOTION, DingKind.DING] if camera.is_doorbot else [DingKind.MOTION]
        for kind in kinds:
            self.dings[kind] = DingTracker(
                kind,
                clock,
                on_change=lambda k=kind: self.publish_ding_state(k),
                spawn=self.spawn,
                lp=self.lp,
            )

        self.snapshot_motion: bool = config.snapshot_mode.on_motion
        if config.snapshot_mode.on_interval:
            if camera.has_battery:
                self.snapshot.state.auto_interval = True
                self.snapshot.state.interval = self.battery_snapshot_interval(camera.data)
            else:
                self.snapshot.state.auto_interval = False
                self.snapshot.state.interval = DEFAULT_WIRED_SNAPSHOT_INTERVAL
        else:
            self.snapshot.state.auto_interval = False
            self.snapshot.state.interval = 0

        self._network_entity: str = "wirelessSignal"
        self._interval_task: asyncio.Task[Any] | None = None

    @staticmethod
    def battery_snapshot_interval(data: Mapping[str, Any]) -> int:
        """Battery cameras follow the 24x7 lite frequency when it is enabled."""
        settings = data.get("settings") or {}
        lite = settings.get("lite_24x7") or {}
        if lite.get("enabled") and isinstance(lite.get("frequency_secs"), (int, float)):
            return int(lite["frequency_secs"])
        return DEFAULT_BATTERY_SNAPSHOT_INTERVAL

    @property
    def device_info(self) -> dict[str, Any]:
        return device_block(self.device_id, self.name, self.camera.model or self.model_name)

    @property
    def snapshots_enabled(self) -> bool:
        return self.snapshot_motion or self.snapshot.state.interval > 0

    @property
    def motion_active(self) -> bool:
        return self.dings[DingKind.MOTION].active

    # -- discovery ------------------------------------------------------

    async def init_camera_discovery_data(self) -> None:
        for kind, tracker in self.dings.items():
            self.add_entity(
                tracker.kind,
                "binary_sensor",
                name=f"{self.name} {DING_NAMES[kind]}",
                suffix=tracker.kind,
                device_class="motion" if kind is DingKind.MOTION else "occupancy",
                attributes=self.state_topic(tracker.kind, "attributes"),
            )
        if self.camera.has_light:
            self.add_entity("light", "light", name=f"{self.name} Light", suffix="light", command=self.set_light_state)
        if self.camera.has_siren:
            self.add_entity("siren", "switch", name=f"{self.name} Siren", suffix="siren", command=self.set_siren_state)

        health = await self.get_health()
        if health.get("network_connection") == "ethernet":
            self._network_entity = "wiredNetwork"
            info_extra: dict[str, Any] = {"value_template": "{{ value_json['wiredNetwork'] | default }}"}
        else:
            info_extra = {
                "value_template": "{{ value_json['wirelessSignal'] | default }}",
                "unit_of_measurement": "RSSI",
            }
        info_extra["icon"] = "mdi:information-outline"
        self.add_entity("info", "sensor", name=f"{self.name} Info", suffix="info", attributes=True, extra=info_extra)

        if self.snapshots_enabled:
            self.add_entity(
                "snapshot",
                "camera",
                name=f"{self.name} Snapshot",
                suffix="snapshot",
                image=True,
                attributes=self.state_topic("snapshot", "attributes"),
            )
            _ = self.add_command(self.command_topic("snapshot", "interval"), self.set_snapshot_interval)

    # -- publishing -----------------------------------------------------

    async def publish(self) -> None:
        """First call seeds history and starts the camera's loops; later calls republish."""
        if not self.discovery_data:
            await self.init_camera_discovery_data()
        await self.publish_discovery_data()

        if not self.subscribed:
            self.subscribed = True
            await self.seed_ding_history()
            self.camera.on_new_ding.subscribe(self._on_new_ding)
            self.camera.on_data.subscribe(self._on_data)
            await self.publish_ding_states()
            await self.publish_polled_state(force=True)
            await self.publish_info_state()
            if self.snapshots_enabled:
                _ = self.spawn(self.publish_snapshot(refresh=True), name=f"{self.lp}snapshot")
                self.start_snapshot_interval()
            _ = self.spawn(self.heartbeat.run(), name=f"{self.lp}heartbeat")
            _ = self.spawn(self.device_health_loop(), name=f"{self.lp}health")
            return

        await self.publish_ding_states()
        await self.publish_light_siren(force=True)
        if self.snapshots_enabled:
            await self.publish_snapshot(refresh=False)
        await self.publish_info_state()
        await self.publish_availability_state()

    async def publish_data(self) -> None:
        await self.publish_ding_states()
        await self.publish_light_siren(force=True)

    async def publish_ding_states(self) -> None:
        for kind in self.dings:
            await self.publish_ding_state(kind)

    async def publish_ding_state(self, kind: DingKind) -> None:
        tracker = self.dings[kind]
        _ = await self.publish_state(kind, "ON" if tracker.active else "OFF")
        _ = await self.publish_mqtt(self.state_topic(kind, "attributes"), json.dumps(tracker.attributes()))

    async def publish_light_siren(self, force: bool = False) -> None:
        data = self.camera.data
        if self.camera.has_light:
            light = "ON" if data.get("led_status") == "on" else "OFF"
            _ = await self.publish_state_if_changed("light", light, force=force)
        if self.camera.has_siren:
            siren_status = data.get("siren_status") or {}
            remaining = siren_status.get("seconds_remaining") or 0
            _ = await self.publish_state_if_changed("siren", "ON" if remaining > 0 else "OFF", force=force)

    async def publish_polled_state(self, force: bool = False) -> None:
        """A poll arrived: publish what changed and count it as a heartbeat."""
        await self.publish_light_siren(force=force)
        self.heartbeat.reset()
        if self.availability_state is not AvailabilityState.ONLINE:
            await self.set_online()

    async def get_health(self) -> Mapping[str, Any]:
        try:
            return await asyncio.wait_for(self.camera.get_health(), timeout=HEALTH_TIMEOUT)
        except TimeoutError:
            logger.debug("%s Timed out fetching device health", self.lp)
        except Exception as e:
            logger.debug("%s Failed to fetch device health: %s", self.lp, e)
        return {}

    def info_attributes(self, health: Mapping[str, Any]) -> dict[str, Any]:
        attributes: dict[str, Any] = {}
        if self.camera.has_battery:
            attributes["batteryLevel"] = health.get("battery_percentage")
        attributes["firmwareStatus"] = health.get("firmware")
        attributes["lastUpdate"] = health.get("updated_at")
        if self._network_entity == "wiredNetwork":
            alerts = self.camera.data.get("alerts") or {}
            attributes["wiredNetwork"] = alerts.get("connection")
        else:
            attributes["wirelessNetwork"] = health.get("wifi_name")
            attributes["wirelessSignal"] = health.get("latest_signal_strength")
        return attributes

    async def publish_info_state(self) -> None:
        health = await self.get_health()
        if not health:
            return
        _ = await self.publish_attributes(self.info_attributes(health))

    async def publish_snapshot(self, refresh: bool = False) -> None:
        if refresh:
            result = await self.snapshot.refresh(self.motion_active)
            if result is None:
                return
        state = self.snapshot.state
        if state.image is None:
            logger.debug("%s No snapshot available to publish", self.lp)
            return
        _ = await self.publish_mqtt(self.state_topic("snapshot", "image"), state.image)
        _ = await self.publish_mqtt(self.state_topic("snapshot", "attributes"), json.dumps({"timestamp": state.timestamp}))

    # -- loops ----------------------------------------------------------

    def start_snapshot_interval(self) -> None:
        if self.snapshot.state.interval <= 0:
            return
        if self._interval_task is not None and not self._interval_task.done():
            return
        self._interval_task = self.spawn(self.snapshot_interval_loop(), name=f"{self.lp}snapshot_interval")

    async def snapshot_interval_loop(self) -> None:
        while True:
            await self.clock.sleep(self.snapshot.state.interval)
            # motion snapshots take priority over interval ones
            if self.motion_active or self.availability_state is not AvailabilityState.ONLINE:
                continue
            await self.publish_snapshot(refresh=True)

    async def device_health_loop(self) -> None:
        while True:
            online = self.availability_state is AvailabilityState.ONLINE
            await self.clock.sleep(CAMERA_HEALTH_ONLINE_INTERVAL if online else CAMERA_HEALTH_OFFLINE_INTERVAL)
            if self.availability_state is AvailabilityState.ONLINE:
                await self.publish_info_state()

    # -- events ---------------------------------------------------------

    async def seed_ding_history(self) -> None:
        for kind, tracker in self.dings.items():
            try:
                events = await self.camera.get_events(kind, limit=1)
            except Exception as e:
                logger.warning("%s Failed to read %s history: %s", self.lp, kind, e)
                continue
            if not events:
                continue
            event = events[0]
            cv_properties = event.get("cv_properties") or {}
            tracker.seed(_event_time(event.get("created_at")), cv_properties.get("detection_type") == "human")

    def _on_new_ding(self, ding: Ding) -> None:
        try:
            kind = DingKind(ding.kind)
        except ValueError:
            return
        if kind not in self.dings:
            return
        _ = self.spawn(self.process_ding(kind, ding), name=f"{self.lp}ding")

    async def process_ding(self, kind: DingKind, ding: Ding) -> None:
        logger.info("%s Received %s ding", self.lp, kind)
        await self.dings[kind].process(ding)
        if kind is DingKind.MOTION and self.snapshot_motion:
            await self.publish_snapshot(refresh=True)

    def _on_data(self, data: Mapping[str, Any]) -> None:
        if self.snapshot.state.auto_interval:
            self.snapshot.state.interval = self.battery_snapshot_interval(data)
        _ = self.spawn(self.publish_polled_state(), name=f"{self.lp}poll")

    # -- commands -------------------------------------------------------

    async def set_light_state(self, message: str) -> None:
        on = parse_on_off(message)
        if on is None:
            logger.warning("%s Received unknown command for light: %s", self.lp, message)
            return
        await self.camera.set_light(on)

    async def set_siren_state(self, message: str) -> None:
        on = parse_on_off(message)
        if on is None:
            logger.warning("%s Received unknown command for siren: %s", self.lp, message)
            return
        await self.camera.set_siren(on)

    async def set_snapshot_interval(self, message: str) -> None:
        try:
            value = float(decode_payload(message))
        except ValueError:
            logger.warning("%s Snapshot interval value received but not a number: %s", self.lp, message)
            return
        if value != value:
            logger.warning("%s Snapshot interval value received but not a number: %s", self.lp, message)
            return
        interval = max(MIN_SNAPSHOT_INTERVAL, round(value))
        self.snapshot.state.interval = interval
        self.snapshot.state.auto_interval = False
        logger.info("%s Snapshot refresh interval has been set to %s seconds", self.lp, interval)
        self.start_snapshot_interval()
