"""Alarm control panels: the hub's security panel and the location modes panel."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ring_mqtt.devices.alarm_device import AlarmDevice
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.structs import DeviceType

if TYPE_CHECKING:
    from ring_mqtt.config import BridgeConfig
    from ring_mqtt.structs import ClockProtocol, LocationProtocol, MqttChannelProtocol

logger = get_logger(__name__)

TRIGGERED_ALARM_STATES = ("burglar-alarm", "entry-delay", "fire-alarm", "co-alarm", "panic", "user-verified-burglar-alarm")
PANEL_STATES = {"none": "disarmed", "some": "armed_home", "all": "armed_away"}
PANEL_COMMANDS = {"disarm": "none", "arm_home": "some", "arm_away": "all"}

MODE_STATES = {"disarmed": "disarmed", "home": "armed_home", "away": "armed_away"}
MODE_COMMANDS = {"disarm": "disarmed", "arm_home": "home", "arm_away": "away"}

PANEL_EXTRA = {"code_arm_required": False, "code_disarm_required": False, "supported_features": ["arm_home", "arm_away"]}


class SecurityPanel(AlarmDevice):
    component = "alarm_control_panel"
    model_name = "Alarm Control Panel"
    info_attribute = "commStatus"

    def init_discovery_data(self) -> None:
        self.add_entity("alarm", "alarm_control_panel", name=self.name, command=self.set_alarm_mode, attributes=True, extra=PANEL_EXTRA)
        self.init_info_discovery_data()

    def alarm_state(self) -> str:
        alarm_info = self.data.get("alarmInfo") or {}
        if alarm_info.get("state") in TRIGGERED_ALARM_STATES:
            return "triggered"
        return PANEL_STATES.get(str(self.data.get("mode")), "unknown")

    async def publish_state_data(self) -> None:
        _ = await self.publish_state("alarm", self.alarm_state())

    async def set_alarm_mode(self, message: str) -> None:
        mode = PANEL_COMMANDS.get(message.casefold())
        if mode is None:
            logger.warning("%s Received invalid alarm command: %s", self.lp, message)
            return
        logger.info("%s Setting alarm mode: %s", self.lp, mode)
        await self.device.location.set_alarm_mode(mode)


@dataclass
class LocationModeDevice:
    """Virtual device standing in for a location's Ring modes setting."""

    location: LocationProtocol
    name: str
    id: str = ""
    device_type: str = DeviceType.LOCATION_MODE
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            self.id = f"{self.location.location_id}_mode_settings"


class ModesPanel(AlarmDevice):
    """Ring modes (Disarmed/Home/Away) as an alarm control panel, for camera-only locations."""

    component = "alarm_control_panel"
    model_name = "Mode Control Panel"

    def __init__(self, device: LocationModeDevice, channel: MqttChannelProtocol, config: BridgeConfig, clock: ClockProtocol) -> None:
        super().__init__(device, channel, config, clock)  # type: ignore[arg-type]
        self.mode: str | None = None

    def init_discovery_data(self) -> None:
        self.add_entity("mode", "alarm_control_panel", name=f"{self.device.location.name} Mode", command=self.set_location_mode, extra=PANEL_EXTRA)

    async def publish_data(self) -> None:
        async with self._publish_lock:
            if self.mode is None:
                self.mode = await self.device.location.get_location_mode()
            _ = await self.publish_state("mode", MODE_STATES.get(str(self.mode), "unknown"))

    def subscribe_events(self) -> None:
        self.device.location.on_location_mode.subscribe(self._on_mode)

    def _on_mode(self, mode: str) -> None:
        self.mode = mode
        _ = self.spawn(self.publish_data(), name=f"{self.lp}on_mode")

    async def set_location_mode(self, message: str) -> None:
        mode = MODE_COMMANDS.get(message.casefold())
        if mode is None:
            logger.warning("%s Received invalid mode command: %s", self.lp, message)
            return
        logger.info("%s Setting location mode: %s", self.lp, mode)
        await self.device.location.set_location_mode(mode)
