"""Top-level wiring between the device provider and the MQTT broker."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from ring_mqtt.availability import AvailabilityMonitor
from ring_mqtt.const import CONNECT_REPUBLISH_DELAY
from ring_mqtt.devices import LocationModeDevice
from ring_mqtt.instrumentation import timed_async
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.registry import DeviceRegistry
from ring_mqtt.republish import RepublishScheduler
from ring_mqtt.utils import Clock

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from ring_mqtt.config import BridgeConfig
    from ring_mqtt.structs import ClockProtocol, LocationProtocol, MqttChannelProtocol, RingApiProtocol

logger = get_logger(__name__)


class RingMqttBridge:
    """Owns the registry, availability monitor and republish scheduler.

    Every republish pass re-reads the provider's locations so devices added
    to the account while the bridge runs are picked up on the next pass.
    """

    lp: str = "bridge:"

    def __init__(
        self,
        config: BridgeConfig,
        api: RingApiProtocol,
        channel: MqttChannelProtocol,
        clock: ClockProtocol | None = None,
    ) -> None:
        self.config: BridgeConfig = config
        self.api: RingApiProtocol = api
        self.channel: MqttChannelProtocol = channel
        self.clock: ClockProtocol = clock or Clock()
        self.registry = DeviceRegistry(channel, config, self.clock)
        self.availability = AvailabilityMonitor(self.registry, self.clock)
        self.scheduler = RepublishScheduler(
            self.clock,
            self.publish_pass,
            lambda: self.channel.is_connected,
            count=config.republish_count,
            delay=config.republish_delay,
        )
        self.locations: dict[str, LocationProtocol] = {}
        self._mode_devices: dict[str, LocationModeDevice] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def on_mqtt_connect(self, first_connect: bool) -> None:
        lp = f"{self.lp}on_mqtt_connect:"
        if first_connect:
            logger.info("%s MQTT connection established, publishing devices in %ss", lp, CONNECT_REPUBLISH_DELAY)
        else:
            logger.info("%s MQTT connection re-established, republishing devices in %ss", lp, CONNECT_REPUBLISH_DELAY)
        _ = self.scheduler.restart(CONNECT_REPUBLISH_DELAY)

    @timed_async("publish_pass")
    async def publish_pass(self) -> None:
        """Publish every device of every selected location once."""
        lp = f"{self.lp}publish_pass:"
        try:
            locations = await self.api.get_locations()
        except Exception:
            logger.exception("%s Failed to read locations from provider", lp)
            return
        for location in locations:
            if self.config.location_ids and location.location_id not in self.config.location_ids:
                continue
            if location.location_id not in self.locations:
                self.watch_location(location)
            await self.publish_location(location)

    def watch_location(self, location: LocationProtocol) -> None:
        logger.info("%s Found location %s (%s)", self.lp, location.name, location.location_id)
        self.locations[location.location_id] = location
        location.on_connected.subscribe(lambda connected, loc=location: self._on_location_connected(loc, connected))

    def _on_location_connected(self, location: LocationProtocol, connected: bool) -> None:
        if connected:
            _ = self.spawn(self._location_online(location), name=f"{self.lp}online:{location.location_id}")
        else:
            logger.info("%s Websocket for location %s disconnected", self.lp, location.location_id)
            _ = self.spawn(self.availability.location_offline(location), name=f"{self.lp}offline:{location.location_id}")

    async def _location_online(self, location: LocationProtocol) -> None:
        logger.info("%s Websocket for location %s connected", self.lp, location.location_id)
        if self.channel.is_connected:
            await self.publish_location(location)
        await self.availability.location_online(location)

    def mode_device(self, location: LocationProtocol) -> LocationModeDevice:
        device = self._mode_devices.get(location.location_id)
        if device is None:
            device = LocationModeDevice(location=location, name=f"{location.name} Mode")
            self._mode_devices[location.location_id] = device
        return device

    async def location_devices(self, location: LocationProtocol) -> list[Any]:
        lp = f"{self.lp}location_devices:"
        devices: list[Any] = []
        # hub devices only report real state while the realtime connection is up
        if location.has_hubs and location.connected:
            try:
                devices.extend(await location.get_devices())
            except Exception:
                logger.exception("%s Failed to read devices for location %s", lp, location.location_id)
        elif location.has_hubs:
            logger.debug("%s Location %s is not connected, skipping hub devices", lp, location.location_id)

        if self.config.enable_cameras:
            devices.extend(location.cameras)

        if self.config.enable_modes:
            try:
                supports_modes = await location.supports_location_mode_switching()
            except Exception as e:
                logger.warning("%s Failed to read mode support for location %s: %s", lp, location.location_id, e)
                supports_modes = False
            if supports_modes:
                devices.append(self.mode_device(location))
        return devices

    async def publish_location(self, location: LocationProtocol) -> None:
        for device in await self.location_devices(location):
            _ = await self.registry.publish(device)

    async def stop(self) -> None:
        lp = f"{self.lp}stop:"
        logger.info("%s Setting all devices offline...", lp)
        await self.scheduler.stop()
        for task in list(self._tasks):
            _ = task.cancel()
        if self._tasks:
            _ = await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.registry.set_all_offline()
        await self.registry.stop()
        try:
            await self.api.close()
        except Exception as e:
            logger.warning("%s Failed to close provider: %s", lp, e)
