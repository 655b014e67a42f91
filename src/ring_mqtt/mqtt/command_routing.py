"""MQTT command routing.

Inbound messages are either Home Assistant status announcements on the hass
topic, which restart the republish cycle, or device commands, which are
routed by location and device id to the owning handler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ring_mqtt.const import CONNECT_REPUBLISH_DELAY, RING_MQTT_HASS_BIRTH_MSG, RING_MQTT_HASS_WILL_MSG
from ring_mqtt.correlation import correlation_context
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.topics import parse_command_topic
from ring_mqtt.utils import decode_payload

if TYPE_CHECKING:
    from ring_mqtt.config import BridgeConfig
    from ring_mqtt.registry import DeviceRegistry
    from ring_mqtt.republish import RepublishScheduler

logger = get_logger(__name__)


class CommandRouter:
    """Helper class for routing MQTT messages to appropriate handlers."""

    lp: str = "mqtt:rcv:"

    def __init__(self, config: BridgeConfig, registry: DeviceRegistry, scheduler: RepublishScheduler) -> None:
        self.config: BridgeConfig = config
        self.registry: DeviceRegistry = registry
        self.scheduler: RepublishScheduler = scheduler

    async def handle_message(self, topic: str, payload: str | bytes) -> None:
        with correlation_context():
            if topic == self.config.hass_topic:
                await self._handle_hass_topic(payload)
                return

            parsed = parse_command_topic(self.config.ring_topic, topic)
            if parsed is None:
                logger.debug("%s Ignoring message on unexpected topic: %s", self.lp, topic)
                return
            logger.debug("%s Command for device %s: topic=%s", self.lp, parsed.device_id, topic)
            _ = await self.registry.route_command(parsed.location_id, parsed.device_id, topic, payload)

    async def _handle_hass_topic(self, payload: str | bytes) -> None:
        """Handle messages on HASS topic."""
        payload_str = decode_payload(payload).casefold()
        if payload_str == RING_MQTT_HASS_BIRTH_MSG.casefold():
            delay = self.config.republish_delay + CONNECT_REPUBLISH_DELAY
            logger.info("%s Home Assistant restart detected, resending device config/state in %s seconds", self.lp, delay)
            _ = self.scheduler.restart(delay)
        elif payload_str == RING_MQTT_HASS_WILL_MSG.casefold():
            logger.info("%s received Last Will msg from Home Assistant, HASS is offline!", self.lp)
        else:
            logger.warning("%s Unknown HASS status message: %s", self.lp, payload_str)
