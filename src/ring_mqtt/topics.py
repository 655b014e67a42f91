"""Topic naming for device state, commands, availability and discovery.

Device topics:    <ring_topic>/<locationId>/<component>/<deviceId>
Entity topics:    <device topic>/<entity>/{state|command|attributes}
Availability:     <device topic>/status
Discovery config: <prefix>/<component>/<locationId>/<deviceId>[_<suffix>]/config
"""

from __future__ import annotations

from typing import NamedTuple


class CommandTopic(NamedTuple):
    location_id: str
    component: str
    device_id: str
    entity: str
    command: str


def device_topic(ring_topic: str, location_id: str, component: str, device_id: str) -> str:
    return f"{ring_topic}/{location_id}/{component}/{device_id}"


def entity_topic(base_topic: str, entity: str, leaf: str) -> str:
    return f"{base_topic}/{entity}/{leaf}"


def availability_topic(base_topic: str) -> str:
    return f"{base_topic}/status"


def discovery_topic(prefix: str, component: str, location_id: str, device_id: str, suffix: str | None = None) -> str:
    object_id = f"{device_id}_{suffix}" if suffix else device_id
    return f"{prefix}/{component}/{location_id}/{object_id}/config"


def parse_command_topic(ring_topic: str, topic: str) -> CommandTopic | None:
    """Split an inbound command topic into its addressing parts.

    Returns ``None`` for topics outside ``ring_topic`` or with the wrong depth.
    """
    prefix = f"{ring_topic}/"
    if not topic.startswith(prefix):
        return None
    parts = topic[len(prefix) :].split("/")
    if len(parts) != 5 or not all(parts):
        return None
    return CommandTopic(*parts)
