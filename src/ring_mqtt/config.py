"""Runtime configuration for the bridge.

Settings come from a YAML/JSON config file when one exists, otherwise from the
environment variables the add-on and docker images have always used.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, field_validator

from ring_mqtt.const import (
    REPUBLISH_COUNT,
    REPUBLISH_DELAY,
    RING_MQTT_DISCOVERY_PREFIX,
    RING_MQTT_FFMPEG_PATH,
    RING_MQTT_STATE_FILE,
    RING_MQTT_TMP_DIR,
    YES_ANSWER,
)
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.structs import SnapshotMode

logger = get_logger(__name__)

# config key -> environment variable
ENV_KEYS: dict[str, str] = {
    "host": "MQTTHOST",
    "port": "MQTTPORT",
    "ring_topic": "MQTTRINGTOPIC",
    "hass_topic": "MQTTHASSTOPIC",
    "mqtt_user": "MQTTUSER",
    "mqtt_pass": "MQTTPASSWORD",
    "ring_token": "RINGTOKEN",
    "enable_cameras": "ENABLECAMERAS",
    "enable_modes": "ENABLEMODES",
    "location_ids": "RINGLOCATIONIDS",
    "snapshot_mode": "SNAPSHOTMODE",
    "provider": "RINGPROVIDER",
}


class BridgeConfig(BaseModel):
    host: str = "localhost"
    port: int = 1883
    mqtt_user: str | None = None
    mqtt_pass: str | None = None
    ring_topic: str = "ring"
    hass_topic: str = "homeassistant/status"
    discovery_prefix: str = RING_MQTT_DISCOVERY_PREFIX
    ring_token: str | None = None
    enable_cameras: bool = False
    enable_modes: bool = False
    location_ids: list[str] = []
    snapshot_mode: SnapshotMode = SnapshotMode.DISABLED
    republish_count: int = REPUBLISH_COUNT
    republish_delay: float = REPUBLISH_DELAY
    provider: str | None = None
    state_file: str = RING_MQTT_STATE_FILE
    tmp_dir: str = RING_MQTT_TMP_DIR
    ffmpeg_path: str = RING_MQTT_FFMPEG_PATH

    @field_validator("enable_cameras", "enable_modes", mode="before")
    @classmethod
    def _yes_answer(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.casefold() in YES_ANSWER
        return value

    @field_validator("location_ids", mode="before")
    @classmethod
    def _split_ids(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [x.strip() for x in value.split(",") if x.strip()]
        return value

    @field_validator("snapshot_mode", mode="before")
    @classmethod
    def _snapshot_mode(cls, value: Any) -> Any:
        if not value:
            return SnapshotMode.DISABLED
        # unknown modes fall through to enum validation and fail startup
        return str(value).strip().casefold()

    @field_validator("mqtt_user", "mqtt_pass", "ring_token", "provider", mode="before")
    @classmethod
    def _empty_is_none(cls, value: Any) -> Any:
        return value or None


def config_from_env(environ: dict[str, str] | None = None) -> BridgeConfig:
    env = os.environ if environ is None else environ
    values = {key: env[var] for key, var in ENV_KEYS.items() if env.get(var)}
    return BridgeConfig.model_validate(values)


def load_config(config_file: Path | None) -> BridgeConfig:
    """Build the bridge configuration.

    Args:
        config_file: YAML or JSON file; ignored when it does not exist

    Raises:
        pydantic.ValidationError: the file or environment holds invalid values
        yaml.YAMLError: the file exists but cannot be parsed

    """
    if config_file is not None and config_file.exists():
        logger.debug("Parsing config file: %s", config_file)
        with config_file.open() as f:
            config_data = yaml.safe_load(f) or {}
        if not isinstance(config_data, dict):
            logger.warning("Config file %s is not a mapping, using environment", config_file)
            return config_from_env()
        cfg = BridgeConfig.model_validate(config_data)
        logger.info("Configuration loaded", extra={"source": str(config_file)})
        return cfg

    logger.info("Config file not found, using environment variables for configuration")
    return config_from_env()
