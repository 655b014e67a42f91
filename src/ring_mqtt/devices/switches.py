"""Z-Wave switches, dimmers and fan controllers."""

from __future__ import annotations

from ring_mqtt.devices.alarm_device import AlarmDevice
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.utils import level_to_percentage, parse_on_off, parse_percentage, percentage_to_level

logger = get_logger(__name__)


class Switch(AlarmDevice):
    component = "switch"
    model_name = "Switch"
    entity = "switch"
    entity_component = "switch"

    def init_discovery_data(self) -> None:
        self.add_entity(self.entity, self.entity_component, name=self.name, command=self.set_switch_state, attributes=True)
        self.init_info_discovery_data()

    async def publish_state_data(self) -> None:
        _ = await self.publish_state(self.entity, "ON" if self.data.get("on") else "OFF")

    async def set_switch_state(self, message: str) -> None:
        on = parse_on_off(message)
        if on is None:
            logger.warning("%s Received invalid switch command: %s", self.lp, message)
            return
        await self.device.set_info({"device": {"v1": {"on": on}}})

    async def set_level(self, message: str) -> None:
        value = parse_percentage(message)
        if value is None:
            logger.warning("%s Level command received but value is outside of range (0-100): %s", self.lp, message)
            return
        level = percentage_to_level(value)
        logger.info("%s Setting level to %s", self.lp, level)
        await self.device.set_info({"device": {"v1": {"level": level}}})

    async def publish_level(self, entity: str, leaf: str) -> None:
        percentage = level_to_percentage(self.data.get("level"))
        if percentage is not None:
            _ = await self.publish_state(entity, str(percentage), leaf)


class MultiLevelSwitch(Switch):
    """Dimmer exposed as a light with 0-100 brightness."""

    component = "light"
    model_name = "Dimming Light"
    entity = "light"
    entity_component = "light"

    def init_discovery_data(self) -> None:
        self.add_entity(
            self.entity,
            self.entity_component,
            name=self.name,
            command=self.set_switch_state,
            attributes=True,
            extra={
                "brightness_state_topic": self.state_topic(self.entity, "brightness_state"),
                "brightness_command_topic": self.add_command(
                    self.command_topic(self.entity, "brightness_command"), self.set_level
                ),
                "brightness_scale": 100,
            },
        )
        self.init_info_discovery_data()

    async def publish_state_data(self) -> None:
        await super().publish_state_data()
        await self.publish_level(self.entity, "brightness_state")


class Fan(Switch):
    """Ceiling fan controller; ``level`` maps to fan percentage."""

    component = "fan"
    model_name = "Fan Controller"
    entity = "fan"
    entity_component = "fan"

    def init_discovery_data(self) -> None:
        self.add_entity(
            self.entity,
            self.entity_component,
            name=self.name,
            command=self.set_switch_state,
            attributes=True,
            extra={
                "percentage_state_topic": self.state_topic(self.entity, "percentage_state"),
                "percentage_command_topic": self.add_command(
                    self.command_topic(self.entity, "percentage_command"), self.set_level
                ),
            },
        )
        self.init_info_discovery_data()

    async def publish_state_data(self) -> None:
        await super().publish_state_data()
        await self.publish_level(self.entity, "percentage_state")
