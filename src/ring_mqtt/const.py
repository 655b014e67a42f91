import os
import zoneinfo

import tzlocal

from ring_mqtt import __version__

__all__ = [
    "AVAILABILITY_OFFLINE",
    "AVAILABILITY_ONLINE",
    "BASE_STATION_ON_VOLUME",
    "CAMERA_HEALTH_OFFLINE_INTERVAL",
    "CAMERA_HEALTH_ONLINE_INTERVAL",
    "CONNECT_REPUBLISH_DELAY",
    "DEFAULT_BATTERY_SNAPSHOT_INTERVAL",
    "DEFAULT_DING_DURATION",
    "DEFAULT_WIRED_SNAPSHOT_INTERVAL",
    "EXIT_BROKER_UNREACHABLE",
    "EXIT_NO_CREDENTIAL",
    "HEARTBEAT_INTERVAL",
    "HEARTBEAT_TICKS",
    "LOCAL_TZ",
    "MIN_SNAPSHOT_INTERVAL",
    "MQTT_CLIENT_START_TASK_NAME",
    "OFFLINE_GRACE_DELAY",
    "REPUBLISH_COUNT",
    "REPUBLISH_DELAY",
    "RING_MANUFACTURER",
    "RING_MQTT_CONFIG_FILE",
    "RING_MQTT_DEBUG",
    "RING_MQTT_DISCOVERY_PREFIX",
    "RING_MQTT_FFMPEG_PATH",
    "RING_MQTT_HASS_BIRTH_MSG",
    "RING_MQTT_HASS_WILL_MSG",
    "RING_MQTT_LOG_FORMAT",
    "RING_MQTT_LOG_HUMAN_OUTPUT",
    "RING_MQTT_LOG_JSON_FILE",
    "RING_MQTT_MQTT_CONN_DELAY",
    "RING_MQTT_PERF_THRESHOLD_MS",
    "RING_MQTT_PERF_TRACKING",
    "RING_MQTT_STATE_FILE",
    "RING_MQTT_TMP_DIR",
    "RING_MQTT_VERSION",
    "SNAPSHOT_FRAME_SIZE",
    "STREAM_ATTEMPTS",
    "STREAM_DURATION",
    "STREAM_MIN_FILE_SIZE",
    "STREAM_POLL_INTERVAL",
    "STREAM_RETRY_DELAY",
    "STREAM_WAIT_SECONDS",
    "UNCACHED_SNAPSHOT_DELAY",
    "VOLUME_PROBE_DELAY",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
LOCAL_TZ = zoneinfo.ZoneInfo(str(tzlocal.get_localzone()))
RING_MQTT_VERSION: str = __version__
RING_MANUFACTURER: str = "Ring"

AVAILABILITY_ONLINE: str = "online"
AVAILABILITY_OFFLINE: str = "offline"

# Paths / external tools
RING_MQTT_CONFIG_FILE: str = os.environ.get("RING_MQTT_CONFIG_FILE", "/data/config.json")
RING_MQTT_STATE_FILE: str = os.environ.get("RING_MQTT_STATE_FILE", "/data/ring-state.json")
RING_MQTT_TMP_DIR: str = os.environ.get("RING_MQTT_TMP_DIR", "/tmp")
RING_MQTT_FFMPEG_PATH: str = os.environ.get("RING_MQTT_FFMPEG_PATH", "ffmpeg")
RING_MQTT_DISCOVERY_PREFIX: str = os.environ.get("RING_MQTT_DISCOVERY_PREFIX", "homeassistant")

RING_MQTT_HASS_BIRTH_MSG = os.environ.get("RING_MQTT_HASS_BIRTH_MSG", "online")
RING_MQTT_HASS_WILL_MSG = os.environ.get("RING_MQTT_HASS_WILL_MSG", "offline")
RING_MQTT_MQTT_CONN_DELAY: int = int(os.environ.get("RING_MQTT_MQTT_CONN_DELAY", "10"))

RING_MQTT_DEBUG = os.environ.get("RING_MQTT_DEBUG", "0").casefold() in YES_ANSWER

# Availability / heartbeat
HEARTBEAT_TICKS: int = 3
HEARTBEAT_INTERVAL: float = 20
OFFLINE_GRACE_DELAY: float = 30

# Republish cycle
REPUBLISH_COUNT: int = 10
REPUBLISH_DELAY: float = 30
CONNECT_REPUBLISH_DELAY: float = 5

# Dings
DEFAULT_DING_DURATION: int = 180

# Snapshots
STREAM_ATTEMPTS: int = 3
STREAM_WAIT_SECONDS: float = 7
STREAM_POLL_INTERVAL: float = 0.1
STREAM_RETRY_DELAY: float = 3
STREAM_MIN_FILE_SIZE: int = 100_000
STREAM_DURATION: int = 10
UNCACHED_SNAPSHOT_DELAY: float = 1
SNAPSHOT_FRAME_SIZE: str = "640:360"
MIN_SNAPSHOT_INTERVAL: int = 10
DEFAULT_BATTERY_SNAPSHOT_INTERVAL: int = 600
DEFAULT_WIRED_SNAPSHOT_INTERVAL: int = 30

# Camera health
CAMERA_HEALTH_ONLINE_INTERVAL: float = 300
CAMERA_HEALTH_OFFLINE_INTERVAL: float = 60

# Base station audio
BASE_STATION_ON_VOLUME: float = 0.65
VOLUME_PROBE_DELAY: float = 1

# Fatal startup exit codes
EXIT_BROKER_UNREACHABLE: int = 1
EXIT_NO_CREDENTIAL: int = 2

MQTT_CLIENT_START_TASK_NAME = "MQTTClient_START"

# Logging Configuration
RING_MQTT_LOG_FORMAT: str = os.environ.get("RING_MQTT_LOG_FORMAT", "human")  # "json", "human", or "both"
RING_MQTT_LOG_JSON_FILE: str = os.environ.get("RING_MQTT_LOG_JSON_FILE", "/var/log/ring_mqtt.json")
RING_MQTT_LOG_HUMAN_OUTPUT: str = os.environ.get("RING_MQTT_LOG_HUMAN_OUTPUT", "stdout")  # "stdout", "stderr", or file path

# Performance Instrumentation
RING_MQTT_PERF_TRACKING: bool = os.environ.get("RING_MQTT_PERF_TRACKING", "true").casefold() in YES_ANSWER
_perf_threshold = os.environ.get("RING_MQTT_PERF_THRESHOLD_MS", "5000")
RING_MQTT_PERF_THRESHOLD_MS: int = int(_perf_threshold) if _perf_threshold and _perf_threshold.isdigit() else 5000
