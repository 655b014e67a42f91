"""Common handler model shared by every Ring device type."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable, Coroutine, Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.mqtt.discovery import DiscoveryDescriptor, DiscoveryHelper, build_descriptor, device_block
from ring_mqtt.structs import AvailabilityState
from ring_mqtt.topics import availability_topic, device_topic, entity_topic
from ring_mqtt.utils import decode_payload

if TYPE_CHECKING:
    from ring_mqtt.config import BridgeConfig
    from ring_mqtt.structs import ClockProtocol, MqttChannelProtocol

logger = get_logger(__name__)

type CommandHandler = Callable[[str], Awaitable[None]]


class RingDevice:
    """Handler for one physical device.

    Owns the device's discovery descriptors, its availability state and the
    mapping of command topics to handler coroutines. Subclasses declare their
    entities in ``init_discovery_data`` and publish their state in
    ``publish_data``.
    """

    component: ClassVar[str] = "sensor"
    model_name: ClassVar[str] = "Ring Device"
    # alarm devices follow the location's realtime connection; cameras use a heartbeat
    uses_location_connection: ClassVar[bool] = True

    def __init__(
        self,
        location_id: str,
        device_id: str,
        name: str,
        channel: MqttChannelProtocol,
        config: BridgeConfig,
        clock: ClockProtocol,
    ) -> None:
        self.location_id: str = location_id
        self.device_id: str = device_id
        self.name: str = name
        self.channel: MqttChannelProtocol = channel
        self.config: BridgeConfig = config
        self.clock: ClockProtocol = clock
        self.lp: str = f"{type(self).__name__}:{device_id}:"

        self.device_topic: str = device_topic(config.ring_topic, location_id, self.component, device_id)
        self.availability_topic: str = availability_topic(self.device_topic)
        # json attributes ride on the info sensor state
        self.attributes_topic: str = entity_topic(self.device_topic, "info", "state")

        self.availability_state: AvailabilityState = AvailabilityState.INIT
        self._availability_published: bool = False
        self.discovery_data: list[DiscoveryDescriptor] = []
        self.command_handlers: dict[str, CommandHandler] = {}
        self.published_state: dict[str, str] = {}
        self.attributes: dict[str, Any] = {}
        self.subscribed: bool = False
        self._discovery = DiscoveryHelper(channel)
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def key(self) -> tuple[str, str]:
        return self.location_id, self.device_id

    @property
    def device_info(self) -> dict[str, Any]:
        return device_block(self.device_id, self.name, self.model_name)

    # -- subclass hooks -------------------------------------------------

    def init_discovery_data(self) -> None:
        raise NotImplementedError

    async def publish_data(self) -> None:
        raise NotImplementedError

    def subscribe_events(self) -> None:
        """Attach to the provider's push events; called once, after the first publish."""

    # -- discovery ------------------------------------------------------

    def state_topic(self, entity: str, leaf: str = "state") -> str:
        return entity_topic(self.device_topic, entity, leaf)

    def command_topic(self, entity: str, leaf: str = "command") -> str:
        return entity_topic(self.device_topic, entity, leaf)

    def add_command(self, topic: str, handler: CommandHandler) -> str:
        self.command_handlers[topic] = handler
        return topic

    def add_entity(
        self,
        entity: str,
        component: str,
        *,
        name: str,
        suffix: str | None = None,
        device_class: str | None = None,
        command: CommandHandler | None = None,
        attributes: bool | str = False,
        image: bool = False,
        extra: dict[str, Any] | None = None,
    ) -> DiscoveryDescriptor:
        """Declare one Home Assistant entity and cache its descriptor."""
        state = self.state_topic(entity, "image" if image else "state")
        descriptor = build_descriptor(
            prefix=self.config.discovery_prefix,
            component=component,
            location_id=self.location_id,
            device_id=self.device_id,
            suffix=suffix,
            name=name,
            availability_topic=self.availability_topic,
            device=self.device_info,
            state_topic=None if image else state,
            image_topic=state if image else None,
            command_topic=self.add_command(self.command_topic(entity), command) if command else None,
            attributes_topic=self.attributes_topic if attributes is True else (attributes or None),
            device_class=device_class,
            extra=extra,
        )
        self.discovery_data.append(descriptor)
        return descriptor

    async def publish_discovery_data(self) -> None:
        for descriptor in self.discovery_data:
            _ = await self._discovery.publish(descriptor)
        # the channel re-subscribes known topics after a reconnect, repeats are harmless
        for topic in self.command_handlers:
            _ = await self.channel.subscribe(topic)

    # -- publishing -----------------------------------------------------

    async def publish(self) -> None:
        """Publish discovery, state and availability. Safe to call on every republish pass."""
        if not self.discovery_data:
            self.init_discovery_data()
        await self.publish_discovery_data()
        await self.publish_data()
        if not self.subscribed:
            self.subscribe_events()
            self.subscribed = True
        if self.availability_state is AvailabilityState.INIT:
            await self.set_online()
        else:
            await self.publish_availability_state()

    async def publish_mqtt(self, topic: str, payload: str | bytes) -> bool:
        return await self.channel.publish(topic, payload, qos=1)

    async def publish_state(self, entity: str, value: str, leaf: str = "state") -> bool:
        return await self.publish_mqtt(self.state_topic(entity, leaf), value)

    async def publish_state_if_changed(self, entity: str, value: str, leaf: str = "state", force: bool = False) -> bool:
        """Publish only when the value differs from the last one sent (or when forced)."""
        key = f"{entity}/{leaf}"
        if not force and self.published_state.get(key) == value:
            return False
        self.published_state[key] = value
        return await self.publish_state(entity, value, leaf)

    async def publish_attributes(self, attributes: Mapping[str, Any] | None = None, topic: str | None = None) -> bool:
        if attributes is not None:
            self.attributes = dict(attributes)
        return await self.publish_mqtt(topic or self.attributes_topic, json.dumps(self.attributes, default=str))

    # -- availability ---------------------------------------------------

    async def publish_availability_state(self) -> None:
        if self.availability_state is AvailabilityState.INIT:
            return
        _ = await self.publish_mqtt(self.availability_topic, self.availability_state.value)
        self._availability_published = True

    async def set_online(self) -> None:
        if self.availability_state is AvailabilityState.ONLINE and self._availability_published:
            return
        logger.debug("%s Setting device online", self.lp)
        self.availability_state = AvailabilityState.ONLINE
        await self.publish_availability_state()

    async def set_offline(self) -> None:
        if self.availability_state is AvailabilityState.INIT:
            logger.debug("%s Ignoring offline before first online", self.lp)
            return
        if self.availability_state is AvailabilityState.OFFLINE and self._availability_published:
            return
        logger.debug("%s Setting device offline", self.lp)
        self.availability_state = AvailabilityState.OFFLINE
        await self.publish_availability_state()

    # -- commands -------------------------------------------------------

    async def process_command(self, topic: str, payload: str | bytes) -> None:
        lp = f"{self.lp}process_command:"
        handler = self.command_handlers.get(topic)
        if handler is None:
            logger.warning("%s Received unknown command topic: %s", lp, topic)
            return
        message = decode_payload(payload)
        logger.info("%s Received command '%s' on %s", lp, message, topic)
        try:
            await handler(message)
        except Exception:
            logger.exception("%s Command handler failed for topic %s", lp, topic)

    # -- task ownership -------------------------------------------------

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def stop(self) -> None:
        for task in list(self._tasks):
            if not task.done():
                _ = task.cancel()
        if self._tasks:
            _ = await asyncio.gather(*self._tasks, return_exceptions=True)
