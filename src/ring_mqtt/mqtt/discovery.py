"""Home Assistant MQTT discovery descriptors.

A descriptor is built once per entity when its handler first publishes and is
re-sent verbatim on every republish pass.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from ring_mqtt.const import AVAILABILITY_OFFLINE, AVAILABILITY_ONLINE, RING_MANUFACTURER
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.topics import discovery_topic

if TYPE_CHECKING:
    from ring_mqtt.structs import MqttChannelProtocol

logger = get_logger(__name__)


class DiscoveryDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    component: str
    unique_id: str
    config_topic: str
    message: dict[str, Any]

    @property
    def payload(self) -> str:
        return json.dumps(self.message)



def device_block(device_id: str, name: str, model: str) -> dict[str, Any]:
    """The ``device`` section shared by every entity of one physical device."""
    return {
        "ids": [device_id],
        "name": name,
        "mf": RING_MANUFACTURER,
        "mdl": model,
    }


def build_descriptor(
    *,
    prefix: str,
    component: str,
    location_id: str,
    device_id: str,
    name: str,
    availability_topic: str,
    device: dict[str, Any],
    suffix: str | None = None,
    state_topic: str | None = None,
    image_topic: str | None = None,
    command_topic: str | None = None,
    attributes_topic: str | None = None,
    device_class: str | None = None,
    extra: dict[str, Any] | None = None,
) -> DiscoveryDescriptor:
    unique_id = f"{device_id}_{suffix}" if suffix else device_id
    message: dict[str, Any] = {
        "name": name,
        "unique_id": unique_id,
        "availability_topic": availability_topic,
        "payload_available": AVAILABILITY_ONLINE,
        "payload_not_available": AVAILABILITY_OFFLINE,
    }
    # camera entities read raw image bytes from `topic` rather than `state_topic`
    if image_topic:
        message["topic"] = image_topic
    elif state_topic:
        message["state_topic"] = state_topic
    if command_topic:
        message["command_topic"] = command_topic
    if attributes_topic:
        message["json_attributes_topic"] = attributes_topic
    if device_class:
        message["device_class"] = device_class
    if extra:
        message.update(extra)
    message["device"] = device

    return DiscoveryDescriptor(
        component=component,
        unique_id=unique_id,
        config_topic=discovery_topic(prefix, component, location_id, device_id, suffix),
        message=message,
    )


class DiscoveryHelper:
    """Sends retained discovery descriptors over the shared channel."""

    lp: str = "discovery:"

    def __init__(self, channel: MqttChannelProtocol) -> None:
        self.channel = channel

    async def publish(self, descriptor: DiscoveryDescriptor) -> bool:
        lp = f"{self.lp}publish:"
        logger.debug("%s HASS config topic: %s", lp, descriptor.config_topic)
        ok = await self.channel.publish(descriptor.config_topic, descriptor.payload, qos=1, retain=True)
        if not ok:
            logger.warning("%s Failed to publish discovery for %s", lp, descriptor.unique_id)
            return False
        return True
