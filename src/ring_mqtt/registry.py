"""Device registry: maps provider devices to handlers and routes commands to them."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from ring_mqtt.devices import (
    Beam,
    BaseStation,
    Camera,
    CoAlarm,
    ContactSensor,
    Fan,
    FloodFreezeSensor,
    Lock,
    ModesPanel,
    MotionSensor,
    MultiLevelSwitch,
    RingDevice,
    SecurityPanel,
    SmokeAlarm,
    SmokeCoListener,
    Switch,
)
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.structs import FAN_CATEGORY_ID, AvailabilityState, DeviceType

if TYPE_CHECKING:
    from ring_mqtt.config import BridgeConfig
    from ring_mqtt.structs import ClockProtocol, MqttChannelProtocol

logger = get_logger(__name__)

LOCK_TYPE_RE = re.compile(r"^lock($|\.)")

BEAM_TYPES = (
    DeviceType.BEAMS_MOTION_SENSOR,
    DeviceType.BEAMS_MULTILEVEL_SWITCH,
    DeviceType.BEAMS_TRANSFORMER_SWITCH,
    DeviceType.BEAMS_LIGHT_GROUP_SWITCH,
)


def resolve_handler(device: Any) -> type[RingDevice] | None:
    """Pick the handler class for a provider device, ``None`` when unsupported."""
    if getattr(device, "is_camera", False):
        return Camera

    device_type = str(getattr(device, "device_type", ""))
    match device_type:
        case DeviceType.CONTACT_SENSOR | DeviceType.RETROFIT_ZONE:
            return ContactSensor
        case DeviceType.MOTION_SENSOR:
            return MotionSensor
        case DeviceType.FLOOD_FREEZE_SENSOR:
            return FloodFreezeSensor
        case DeviceType.SECURITY_PANEL:
            return SecurityPanel
        case DeviceType.SMOKE_ALARM:
            return SmokeAlarm
        case DeviceType.CO_ALARM:
            return CoAlarm
        case DeviceType.SMOKE_CO_LISTENER:
            return SmokeCoListener
        case t if t in BEAM_TYPES:
            return Beam
        case DeviceType.MULTI_LEVEL_SWITCH:
            data = getattr(device, "data", None) or {}
            return Fan if data.get("categoryId") == FAN_CATEGORY_ID else MultiLevelSwitch
        case DeviceType.SWITCH:
            return Switch
        case DeviceType.BASE_STATION:
            return BaseStation
        case DeviceType.LOCATION_MODE:
            return ModesPanel
        case t if LOCK_TYPE_RE.match(t):
            return Lock
        case _:
            return None


def device_key(device: Any) -> tuple[str, str]:
    if getattr(device, "is_camera", False):
        return str(device.location_id), str(device.id)
    return str(device.location.location_id), str(device.id)


class DeviceRegistry:
    """Owns one handler per ``(location_id, device_id)`` for the process lifetime."""

    lp: str = "registry:"

    def __init__(self, channel: MqttChannelProtocol, config: BridgeConfig, clock: ClockProtocol) -> None:
        self.channel: MqttChannelProtocol = channel
        self.config: BridgeConfig = config
        self.clock: ClockProtocol = clock
        self.handlers: dict[tuple[str, str], RingDevice] = {}
        self._unsupported: set[str] = set()

    def __len__(self) -> int:
        return len(self.handlers)

    def get(self, location_id: str, device_id: str) -> RingDevice | None:
        return self.handlers.get((location_id, device_id))

    def handlers_for(self, location_id: str) -> list[RingDevice]:
        return [h for (loc_id, _), h in self.handlers.items() if loc_id == location_id]

    def get_or_create(self, device: Any) -> RingDevice | None:
        key = device_key(device)
        handler = self.handlers.get(key)
        if handler is not None:
            return handler
        handler_cls = resolve_handler(device)
        if handler_cls is None:
            device_type = str(getattr(device, "device_type", "unknown"))
            if device_type not in self._unsupported:
                self._unsupported.add(device_type)
                logger.info("%s Unsupported device type: %s (%s)", self.lp, device_type, getattr(device, "name", key[1]))
            return None
        handler = handler_cls(device, self.channel, self.config, self.clock)
        self.handlers[key] = handler
        logger.debug("%s Registered %s for device %s", self.lp, handler_cls.__name__, key[1])
        return handler

    async def publish(self, device: Any) -> RingDevice | None:
        """Publish a device, creating its handler on first sight."""
        key = device_key(device)
        existing = key in self.handlers
        handler = self.get_or_create(device)
        if handler is None:
            return None
        if existing and isinstance(handler, Camera) and handler.availability_state is not AvailabilityState.ONLINE:
            logger.debug("%s Camera %s is not online, skipping republish", self.lp, handler.device_id)
            return handler
        try:
            await handler.publish()
        except Exception:
            logger.exception("%s Failed to publish device %s", self.lp, handler.device_id)
        return handler

    async def route_command(self, location_id: str, device_id: str, topic: str, payload: str | bytes) -> bool:
        handler = self.handlers.get((location_id, device_id))
        if handler is None:
            logger.warning("%s Received command for unknown device %s in location %s", self.lp, device_id, location_id)
            return False
        await handler.process_command(topic, payload)
        return True

    async def set_all_offline(self) -> None:
        for handler in self.handlers.values():
            await handler.set_offline()

    async def stop(self) -> None:
        for handler in self.handlers.values():
            await handler.stop()
