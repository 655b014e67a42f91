"""Online/offline tracking: camera heartbeats and location connectivity."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ring_mqtt.const import HEARTBEAT_INTERVAL, HEARTBEAT_TICKS, OFFLINE_GRACE_DELAY
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.structs import AvailabilityState

if TYPE_CHECKING:
    from ring_mqtt.devices.base_device import RingDevice
    from ring_mqtt.registry import DeviceRegistry
    from ring_mqtt.structs import ClockProtocol, LocationProtocol

logger = get_logger(__name__)


class HeartbeatMonitor:
    """Marks the device offline once ``ticks * interval`` seconds pass without a poll.

    Each poll calls ``reset``, which restarts the full timeout from that
    moment. The loop keeps running after the device goes offline so a later
    poll can bring it back.
    """

    def __init__(
        self,
        device: RingDevice,
        clock: ClockProtocol,
        ticks: int = HEARTBEAT_TICKS,
        interval: float = HEARTBEAT_INTERVAL,
    ) -> None:
        self.device: RingDevice = device
        self.clock: ClockProtocol = clock
        self.ticks: int = ticks
        self.interval: float = interval
        self.last_poll: float = clock.time()

    @property
    def timeout(self) -> float:
        return self.ticks * self.interval

    @property
    def expires_at(self) -> float:
        return self.last_poll + self.timeout

    def reset(self) -> None:
        self.last_poll = self.clock.time()

    async def run(self) -> None:
        lp = f"{self.device.lp}heartbeat:"
        while True:
            if (wait := self.expires_at - self.clock.time()) > 0:
                await self.clock.sleep(wait)
                continue
            if self.device.availability_state is AvailabilityState.ONLINE:
                logger.info("%s No polling data received for %ss, marking device offline", lp, self.timeout)
                await self.device.set_offline()
            # idle until a poll moves expires_at forward again
            await self.clock.sleep(self.interval)


class AvailabilityMonitor:
    """Applies location connect/disconnect signals to every hub-attached handler."""

    lp: str = "availability:"

    def __init__(self, registry: DeviceRegistry, clock: ClockProtocol, grace_delay: float = OFFLINE_GRACE_DELAY) -> None:
        self.registry: DeviceRegistry = registry
        self.clock: ClockProtocol = clock
        self.grace_delay: float = grace_delay

    def _location_handlers(self, location_id: str) -> list[RingDevice]:
        return [h for h in self.registry.handlers_for(location_id) if h.uses_location_connection]

    async def location_online(self, location: LocationProtocol) -> None:
        logger.info("%s Location %s is online", self.lp, location.location_id)
        for handler in self._location_handlers(location.location_id):
            await handler.set_online()

    async def location_offline(self, location: LocationProtocol) -> None:
        """Mark the location's devices offline unless the connection returns within the grace delay."""
        lp = f"{self.lp}location_offline:"
        await self.clock.sleep(self.grace_delay)
        if location.connected:
            logger.debug("%s Location %s reconnected within %ss, not setting devices offline", lp, location.location_id, self.grace_delay)
            return
        logger.info("%s Websocket for location id %s is disconnected, setting devices offline", lp, location.location_id)
        for handler in self._location_handlers(location.location_id):
            await handler.set_offline()
