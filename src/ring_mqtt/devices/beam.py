"""Ring smart lighting (Beams): motion sensors, lights, transformers and light groups."""

from __future__ import annotations

from ring_mqtt.devices.alarm_device import AlarmDevice
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.structs import DeviceType
from ring_mqtt.utils import level_to_percentage, parse_on_off, parse_percentage, percentage_to_level

logger = get_logger(__name__)


class Beam(AlarmDevice):
    component = "light"
    model_name = "Beam"

    @property
    def is_light_group(self) -> bool:
        return self.device.device_type == DeviceType.BEAMS_LIGHT_GROUP_SWITCH

    @property
    def has_motion(self) -> bool:
        return self.device.device_type not in (DeviceType.BEAMS_TRANSFORMER_SWITCH, DeviceType.BEAMS_LIGHT_GROUP_SWITCH)

    @property
    def has_light(self) -> bool:
        return self.device.device_type != DeviceType.BEAMS_MOTION_SENSOR

    @property
    def has_brightness(self) -> bool:
        return self.device.device_type == DeviceType.BEAMS_MULTILEVEL_SWITCH

    def init_discovery_data(self) -> None:
        if self.has_motion:
            self.add_entity("motion", "binary_sensor", name=f"{self.name} Motion", suffix="motion", device_class="motion")
        if self.has_light:
            extra = None
            if self.has_brightness:
                extra = {
                    "brightness_scale": 100,
                    "brightness_state_topic": self.state_topic("light", "brightness_state"),
                    "brightness_command_topic": self.add_command(
                        self.command_topic("light", "brightness_command"), self.set_switch_level
                    ),
                }
            self.add_entity(
                "light",
                "light",
                name=f"{self.name} Light",
                suffix="light",
                command=self.set_switch_state,
                extra=extra,
            )
        if not self.is_light_group:
            self.init_info_discovery_data()

    async def publish_state_data(self) -> None:
        if self.has_motion:
            _ = await self.publish_state("motion", "ON" if self.data.get("motionStatus") == "faulted" else "OFF")
        if self.has_light:
            _ = await self.publish_state("light", "ON" if self.data.get("on") else "OFF")
            if self.has_brightness:
                level = self.data.get("level")
                percentage = level_to_percentage(level) if isinstance(level, (int, float)) else 0
                _ = await self.publish_state("light", str(percentage), "brightness_state")

    async def publish_data(self) -> None:
        # light groups have no battery or tamper data to report
        if self.is_light_group:
            async with self._publish_lock:
                await self.publish_state_data()
            return
        await super().publish_data()

    async def set_switch_state(self, message: str) -> None:
        on = parse_on_off(message)
        if on is None:
            logger.warning("%s Received invalid command for light: %s", self.lp, message)
            return
        group_id = self.data.get("groupId")
        if self.is_light_group and group_id:
            await self.device.location.set_light_group(str(group_id), on)
        elif on:
            await self.device.send_command("light-mode.set", {"lightMode": "on"})
        else:
            await self.device.send_command("light-mode.set", {"lightMode": "default"})

    async def set_switch_level(self, message: str) -> None:
        value = parse_percentage(message)
        if value is None:
            logger.warning("%s Brightness command received but value is outside of range (0-100): %s", self.lp, message)
            return
        await self.device.set_info({"device": {"v1": {"level": percentage_to_level(value)}}})
