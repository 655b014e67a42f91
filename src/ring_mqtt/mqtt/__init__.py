"""MQTT package for the Ring bridge.

- client.py: broker connection lifecycle and the shared publish channel
- command_routing.py: inbound message routing
- discovery.py: Home Assistant discovery descriptors
"""

from .client import MQTTClient
from .command_routing import CommandRouter
from .discovery import DiscoveryDescriptor, DiscoveryHelper, build_descriptor, device_block

__all__ = [
    "CommandRouter",
    "DiscoveryDescriptor",
    "DiscoveryHelper",
    "MQTTClient",
    "build_descriptor",
    "device_block",
]
