"""Handlers for devices attached to a Ring alarm or lighting hub."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar

from ring_mqtt.const import LOCAL_TZ
from ring_mqtt.devices.base_device import RingDevice
from ring_mqtt.logging_abstraction import get_logger

if TYPE_CHECKING:
    from ring_mqtt.config import BridgeConfig
    from ring_mqtt.structs import ClockProtocol, MqttChannelProtocol, RingDeviceProtocol

logger = get_logger(__name__)

INFO_ATTRIBUTE_KEYS = ("acStatus", "batteryLevel", "batteryStatus", "commStatus", "tamperStatus", "firmwareUpdate")


class AlarmDevice(RingDevice):
    """Base for hub-attached devices: state from ``device.data``, commands to the hub."""

    # attribute shown as the value of the Info sensor
    info_attribute: ClassVar[str] = "batteryLevel"

    def __init__(
        self,
        device: RingDeviceProtocol,
        channel: MqttChannelProtocol,
        config: BridgeConfig,
        clock: ClockProtocol,
    ) -> None:
        super().__init__(device.location.location_id, str(device.id), device.name, channel, config, clock)
        self.device: RingDeviceProtocol = device
        self._publish_lock = asyncio.Lock()

    @property
    def data(self) -> Mapping[str, Any]:
        return self.device.data

    def init_info_discovery_data(self) -> None:
        self.add_entity(
            "info",
            "sensor",
            name=f"{self.name} Info",
            suffix="info",
            attributes=True,
            extra={
                "value_template": f"{{{{ value_json['{self.info_attribute}'] | default }}}}",
                "icon": "mdi:information-outline",
            },
        )

    def info_attributes(self) -> dict[str, Any]:
        attributes: dict[str, Any] = {k: self.data[k] for k in INFO_ATTRIBUTE_KEYS if self.data.get(k) is not None}
        last_comm = self.data.get("lastCommTime")
        if isinstance(last_comm, (int, float)):
            attributes["lastCommTime"] = datetime.fromtimestamp(last_comm / 1000, tz=LOCAL_TZ).isoformat()
        return attributes

    async def publish_state_data(self) -> None:
        raise NotImplementedError

    async def publish_data(self) -> None:
        async with self._publish_lock:
            await self.publish_state_data()
            _ = await self.publish_attributes(self.info_attributes())

    def subscribe_events(self) -> None:
        self.device.on_data.subscribe(self._on_device_data)

    def _on_device_data(self, _data: Mapping[str, Any]) -> None:
        _ = self.spawn(self.publish_data(), name=f"{self.lp}on_data")


class BinarySensorDevice(AlarmDevice):
    """Single binary sensor entity reporting ON/OFF from one data key."""

    component = "binary_sensor"
    entity: ClassVar[str] = "sensor"
    device_class: ClassVar[str | None] = None

    def sensor_device_class(self) -> str | None:
        return self.device_class

    def is_active(self) -> bool:
        return bool(self.data.get("faulted"))

    def init_discovery_data(self) -> None:
        self.add_entity(
            self.entity,
            "binary_sensor",
            name=self.name,
            device_class=self.sensor_device_class(),
            attributes=True,
        )
        self.init_info_discovery_data()

    async def publish_state_data(self) -> None:
        _ = await self.publish_state(self.entity, "ON" if self.is_active() else "OFF")
