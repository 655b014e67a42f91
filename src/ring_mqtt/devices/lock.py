from __future__ import annotations

from ring_mqtt.devices.alarm_device import AlarmDevice
from ring_mqtt.logging_abstraction import get_logger

logger = get_logger(__name__)

LOCK_STATES = {"locked": "LOCKED", "unlocked": "UNLOCKED"}
LOCK_COMMANDS = ("lock", "unlock")


class Lock(AlarmDevice):
    """Z-Wave lock paired to the alarm hub."""

    component = "lock"
    model_name = "Lock"

    def init_discovery_data(self) -> None:
        self.add_entity("lock", "lock", name=self.name, command=self.set_lock_state, attributes=True)
        self.init_info_discovery_data()

    async def publish_state_data(self) -> None:
        state = LOCK_STATES.get(str(self.data.get("locked")), "UNKNOWN")
        _ = await self.publish_state("lock", state)

    async def set_lock_state(self, message: str) -> None:
        command = message.casefold()
        if command not in LOCK_COMMANDS:
            logger.warning("%s Received invalid lock command: %s", self.lp, message)
            return
        logger.info("%s Sending lock.%s", self.lp, command)
        await self.device.send_command(f"lock.{command}")
