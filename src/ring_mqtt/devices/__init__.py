"""Device handlers, one class per Ring capability class."""

from .alarm_device import AlarmDevice, BinarySensorDevice
from .base_device import RingDevice
from .base_station import BaseStation
from .beam import Beam
from .camera import Camera
from .lock import Lock
from .security_panel import LocationModeDevice, ModesPanel, SecurityPanel
from .sensors import CoAlarm, ContactSensor, FloodFreezeSensor, MotionSensor, SmokeAlarm, SmokeCoListener
from .switches import Fan, MultiLevelSwitch, Switch

__all__ = [
    "AlarmDevice",
    "BaseStation",
    "Beam",
    "BinarySensorDevice",
    "Camera",
    "CoAlarm",
    "ContactSensor",
    "Fan",
    "FloodFreezeSensor",
    "LocationModeDevice",
    "Lock",
    "ModesPanel",
    "MotionSensor",
    "MultiLevelSwitch",
    "RingDevice",
    "SecurityPanel",
    "SmokeAlarm",
    "SmokeCoListener",
    "Switch",
]
