from __future__ import annotations

import math
from typing import Any

from ring_mqtt.const import BASE_STATION_ON_VOLUME, VOLUME_PROBE_DELAY
from ring_mqtt.devices.alarm_device import AlarmDevice
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.utils import parse_on_off, parse_percentage, percentage_to_level

logger = get_logger(__name__)


class BaseStation(AlarmDevice):
    """Alarm base station.

    Has no sensors of its own; exposes an info sensor and, when the account is
    allowed to change it, the siren/chime volume as a dimmable "Audio Settings"
    light.
    """

    component = "alarm"
    model_name = "Alarm Base Station"
    info_attribute = "acStatus"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.name = f"{self.device.location.name} Base Station"
        self.volume_control: bool | None = None

    @property
    def volume(self) -> float:
        volume = self.data.get("volume")
        return float(volume) if isinstance(volume, (int, float)) and not math.isnan(volume) else 0.0

    @property
    def volume_percentage(self) -> int:
        return round(self.volume * 100)

    async def probe_volume_control(self) -> bool:
        """Nudge the volume and check it sticks; shared accounts cannot change it."""
        original = self.volume
        test_volume = 0.99 if original >= 1 else round(original + 0.01, 2)
        await self.device.set_volume(test_volume)
        await self.clock.sleep(VOLUME_PROBE_DELAY)
        if math.isclose(self.volume, test_volume, abs_tol=0.001):
            logger.debug("%s Account has access to set volume on base station, enabling volume control", self.lp)
            await self.device.set_volume(original)
            return True
        logger.debug("%s Account does not have access to set volume on base station, disabling volume control", self.lp)
        return False

    async def publish(self) -> None:
        if self.volume_control is None:
            self.volume_control = await self.probe_volume_control()
        await super().publish()

    def init_discovery_data(self) -> None:
        if self.volume_control:
            self.add_entity(
                "audio",
                "light",
                name=f"{self.name} Audio Settings",
                suffix="audio",
                command=self.set_audio_state,
                extra={
                    "brightness_scale": 100,
                    "brightness_state_topic": self.state_topic("audio", "volume_state"),
                    "brightness_command_topic": self.add_command(
                        self.command_topic("audio", "volume_command"), self.set_volume_level
                    ),
                },
            )
        self.init_info_discovery_data()

    async def publish_state_data(self) -> None:
        if not self.volume_control:
            return
        volume = self.volume_percentage
        _ = await self.publish_state("audio", "ON" if volume > 0 else "OFF")
        _ = await self.publish_state("audio", str(volume), "volume_state")

    async def set_audio_state(self, message: str) -> None:
        on = parse_on_off(message)
        if on is None:
            logger.warning("%s Received invalid audio command: %s", self.lp, message)
            return
        if on == (self.volume_percentage > 0):
            return
        volume = BASE_STATION_ON_VOLUME if on else 0
        logger.info("%s Setting volume level to %s%%", self.lp, round(volume * 100))
        await self.device.set_volume(volume)

    async def set_volume_level(self, message: str) -> None:
        value = parse_percentage(message)
        if value is None:
            logger.warning("%s Volume command received but value is outside of range (0-100): %s", self.lp, message)
            return
        await self.device.set_volume(percentage_to_level(value))
