"""Alarm sensors: contact, motion, flood/freeze, smoke and CO."""

from __future__ import annotations

from typing import override

from ring_mqtt.devices.alarm_device import AlarmDevice, BinarySensorDevice
from ring_mqtt.structs import WINDOW_SUBCATEGORY_ID, DeviceType


def _alarm_active(status: object) -> bool:
    return status == "active"


class ContactSensor(BinarySensorDevice):
    """Door/window contact sensors and retrofit alarm zones."""

    model_name = "Contact Sensor"

    @property
    def is_zone(self) -> bool:
        return self.device.device_type == DeviceType.RETROFIT_ZONE

    @property
    def entity(self) -> str:  # type: ignore[override]
        return "zone" if self.is_zone else "contact"

    @override
    def sensor_device_class(self) -> str:
        if self.is_zone:
            return "safety"
        return "window" if self.data.get("subCategoryId") == WINDOW_SUBCATEGORY_ID else "door"


class MotionSensor(BinarySensorDevice):
    model_name = "Motion Sensor"
    entity = "motion"
    device_class = "motion"


class SmokeAlarm(BinarySensorDevice):
    model_name = "Smoke Alarm"
    entity = "smoke"
    device_class = "smoke"

    @override
    def is_active(self) -> bool:
        return _alarm_active(self.data.get("alarmStatus"))


class CoAlarm(BinarySensorDevice):
    model_name = "CO Alarm"
    entity = "co"
    device_class = "gas"

    @override
    def is_active(self) -> bool:
        return _alarm_active(self.data.get("alarmStatus"))


class FloodFreezeSensor(AlarmDevice):
    """One device, two binary sensors: water leak and low temperature."""

    component = "binary_sensor"
    model_name = "Flood & Freeze Sensor"

    def init_discovery_data(self) -> None:
        self.add_entity("flood", "binary_sensor", name=f"{self.name} Flood", suffix="flood", device_class="moisture", attributes=True)
        self.add_entity("freeze", "binary_sensor", name=f"{self.name} Freeze", suffix="freeze", device_class="cold", attributes=True)
        self.init_info_discovery_data()

    async def publish_state_data(self) -> None:
        flood = self.data.get("flood") or {}
        freeze = self.data.get("freeze") or {}
        _ = await self.publish_state("flood", "ON" if flood.get("faulted") else "OFF")
        _ = await self.publish_state("freeze", "ON" if freeze.get("faulted") else "OFF")


class SmokeCoListener(AlarmDevice):
    """Listens for existing smoke/CO alarms and reports them as two sensors."""

    component = "binary_sensor"
    model_name = "Smoke & CO Listener"
    info_attribute = "commStatus"

    def init_discovery_data(self) -> None:
        self.add_entity("smoke", "binary_sensor", name=f"{self.name} Smoke", suffix="smoke", device_class="smoke", attributes=True)
        self.add_entity("co", "binary_sensor", name=f"{self.name} CO", suffix="co", device_class="gas", attributes=True)
        self.init_info_discovery_data()

    async def publish_state_data(self) -> None:
        smoke = self.data.get("smoke") or {}
        co = self.data.get("co") or {}
        _ = await self.publish_state("smoke", "ON" if _alarm_active(smoke.get("alarmStatus")) else "OFF")
        _ = await self.publish_state("co", "ON" if _alarm_active(co.get("alarmStatus")) else "OFF")
