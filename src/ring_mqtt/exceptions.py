"""Exception hierarchy for the Ring MQTT bridge.

Only startup failures escape to ``main()``; everything raised while the
bridge is running is caught at the device or snapshot boundary and logged.
"""

from __future__ import annotations

from ring_mqtt.const import EXIT_BROKER_UNREACHABLE, EXIT_NO_CREDENTIAL


class RingMqttError(Exception):
    """Base class for bridge errors.

    Attributes:
        exit_code: Process exit status when the error aborts startup

    """

    exit_code: int = 1


class RingCredentialError(RingMqttError):
    """No usable refresh token, or the provider rejected every token we tried."""

    exit_code = EXIT_NO_CREDENTIAL


class BrokerUnreachableError(RingMqttError):
    """The first connection attempt to the MQTT broker failed."""

    exit_code = EXIT_BROKER_UNREACHABLE

    def __init__(self, host: str, port: int, reason: str) -> None:
        self.host: str = host
        self.port: int = port
        self.reason: str = reason
        super().__init__(f"Unable to connect to MQTT broker {host}:{port}: {reason}")


class SnapshotError(RingMqttError):
    """A snapshot tier failed; the engine falls back to the cached image."""
