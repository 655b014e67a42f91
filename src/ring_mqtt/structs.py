"""Core data structures and typing protocols for the Ring MQTT bridge.

The cloud inventory (locations, alarm devices, cameras) is supplied by a
provider object; the protocols below describe the surface the bridge uses so
any provider with the same shape can be plugged in.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel

from ring_mqtt.const import DEFAULT_DING_DURATION

T_co = TypeVar("T_co", covariant=True)


class AvailabilityState(StrEnum):
    INIT = "init"
    ONLINE = "online"
    OFFLINE = "offline"


class DingKind(StrEnum):
    MOTION = "motion"
    DING = "ding"


class SnapshotMode(StrEnum):
    DISABLED = "disabled"
    MOTION = "motion"
    INTERVAL = "interval"
    ALL = "all"

    @property
    def on_motion(self) -> bool:
        return self in (SnapshotMode.MOTION, SnapshotMode.ALL)

    @property
    def on_interval(self) -> bool:
        return self in (SnapshotMode.INTERVAL, SnapshotMode.ALL)


class DeviceType(StrEnum):
    """Device type tags reported by the Ring alarm API."""

    CONTACT_SENSOR = "sensor.contact"
    RETROFIT_ZONE = "sensor.zone"
    MOTION_SENSOR = "sensor.motion"
    FLOOD_FREEZE_SENSOR = "sensor.flood-freeze"
    SECURITY_PANEL = "security-panel"
    SMOKE_ALARM = "alarm.smoke"
    CO_ALARM = "alarm.co"
    SMOKE_CO_LISTENER = "listener.smoke-co"
    BEAMS_MOTION_SENSOR = "motion-sensor.beams"
    BEAMS_MULTILEVEL_SWITCH = "switch.multilevel.beams"
    BEAMS_TRANSFORMER_SWITCH = "switch.transformer.beams"
    BEAMS_LIGHT_GROUP_SWITCH = "group.light-group.beams"
    MULTI_LEVEL_SWITCH = "switch.multilevel"
    SWITCH = "switch"
    BASE_STATION = "hub.redsky"
    LOCATION_MODE = "location.mode"


FAN_CATEGORY_ID = 17
WINDOW_SUBCATEGORY_ID = 2


class Ding(BaseModel):
    """A motion or doorbell event pushed by a camera."""

    id: int | str
    kind: str
    now: float
    expires_in: int = DEFAULT_DING_DURATION
    detection_type: str | None = None


@dataclass
class DingState:
    """Lifecycle of the most recent ding of one kind on one camera."""

    active: bool = False
    last_ding: float = 0
    ding_duration: int = DEFAULT_DING_DURATION
    last_ding_expires: float = 0
    last_ding_time: str = "none"
    is_person: bool = False


@dataclass
class SnapshotState:
    image: bytes | None = None
    timestamp: float | None = None
    updating: bool = False
    interval: int = 0
    auto_interval: bool = True


class ClockProtocol(Protocol):
    """Time source used by every timer loop so tests can drive virtual time."""

    def time(self) -> float: ...

    async def sleep(self, seconds: float) -> None: ...


class SubscribableProtocol(Protocol[T_co]):
    """Push-style event source (connectivity, attribute updates, dings)."""

    def subscribe(self, callback: Callable[[T_co], object]) -> object: ...


class MqttChannelProtocol(Protocol):
    """Publish/subscribe surface handlers use to talk to the broker."""

    @property
    def is_connected(self) -> bool: ...

    async def publish(self, topic: str, payload: str | bytes, qos: int = 1, retain: bool = False) -> bool: ...

    async def subscribe(self, topic: str) -> bool: ...


class LocationProtocol(Protocol):
    location_id: str
    name: str
    has_hubs: bool
    on_connected: SubscribableProtocol[bool]
    on_location_mode: SubscribableProtocol[str]

    @property
    def connected(self) -> bool:
        """Whether the realtime session for this location is currently up."""
        ...

    @property
    def cameras(self) -> list[RingCameraProtocol]: ...

    async def get_devices(self) -> list[RingDeviceProtocol]: ...

    async def supports_location_mode_switching(self) -> bool: ...

    async def get_location_mode(self) -> str: ...

    async def set_location_mode(self, mode: str) -> None: ...

    async def set_alarm_mode(self, mode: str) -> None:
        """Set the security panel mode: ``none``, ``some`` or ``all``."""
        ...

    async def set_light_group(self, group_id: str, on: bool, duration: int | None = None) -> None: ...


class RingDeviceProtocol(Protocol):
    """Alarm or lighting device attached to a location hub."""

    id: str
    name: str
    device_type: str
    data: Mapping[str, Any]
    location: LocationProtocol
    on_data: SubscribableProtocol[Mapping[str, Any]]

    async def send_command(self, command_type: str, data: Mapping[str, Any] | None = None) -> None: ...

    async def set_info(self, body: Mapping[str, Any]) -> None: ...

    async def set_volume(self, volume: float) -> None: ...


class StreamSessionProtocol(Protocol):
    on_call_ended: SubscribableProtocol[None]

    def stop(self) -> None: ...


class RingCameraProtocol(Protocol):
    id: str
    is_camera: bool
    name: str
    model: str
    location_id: str
    data: Mapping[str, Any]
    is_doorbot: bool
    has_light: bool
    has_siren: bool
    has_battery: bool
    operating_on_battery: bool
    snapshots_are_blocked: bool
    on_data: SubscribableProtocol[Mapping[str, Any]]
    on_new_ding: SubscribableProtocol[Ding]

    async def get_events(self, kind: str, limit: int = 1) -> list[Mapping[str, Any]]: ...

    async def get_health(self) -> Mapping[str, Any]: ...

    async def get_snapshot(self) -> bytes: ...

    async def request_snapshot_update(self) -> None: ...

    async def get_uncached_snapshot(self) -> bytes: ...

    async def stream_video(self, output_args: list[str]) -> StreamSessionProtocol: ...

    async def set_light(self, on: bool) -> None: ...

    async def set_siren(self, on: bool) -> None: ...


class RefreshTokenUpdate(BaseModel):
    old_refresh_token: str | None = None
    new_refresh_token: str


class RingApiProtocol(Protocol):
    """Entry point of a device inventory provider."""

    on_refresh_token_updated: SubscribableProtocol[RefreshTokenUpdate]

    async def get_locations(self) -> list[LocationProtocol]: ...

    async def close(self) -> None: ...
