"""Ring devices to MQTT bridge with Home Assistant discovery."""

__version__ = "0.4.0"
