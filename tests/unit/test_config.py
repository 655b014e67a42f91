"""
Unit tests for configuration loading from the environment and config files.
"""

import json

import pytest
from pydantic import ValidationError

from ring_mqtt.config import BridgeConfig, config_from_env, load_config
from ring_mqtt.structs import SnapshotMode


class TestConfigFromEnv:
    """Tests for config_from_env"""

    def test_defaults(self):
        cfg = config_from_env({})

        assert cfg.host == "localhost"
        assert cfg.port == 1883
        assert cfg.ring_topic == "ring"
        assert cfg.hass_topic == "homeassistant/status"
        assert cfg.enable_cameras is False
        assert cfg.location_ids == []
        assert cfg.snapshot_mode is SnapshotMode.DISABLED
        assert cfg.republish_count == 10
        assert cfg.republish_delay == 30

    def test_environment_values(self):
        cfg = config_from_env(
            {
                "MQTTHOST": "broker.lan",
                "MQTTPORT": "8883",
                "MQTTUSER": "ring",
                "MQTTPASSWORD": "secret",
                "ENABLECAMERAS": "true",
                "ENABLEMODES": "no",
                "RINGLOCATIONIDS": "loc1, loc2,,",
                "SNAPSHOTMODE": "Motion",
                "RINGTOKEN": "token",
            }
        )

        assert cfg.host == "broker.lan"
        assert cfg.port == 8883
        assert cfg.mqtt_user == "ring"
        assert cfg.enable_cameras is True
        assert cfg.enable_modes is False
        assert cfg.location_ids == ["loc1", "loc2"]
        assert cfg.snapshot_mode is SnapshotMode.MOTION
        assert cfg.ring_token == "token"

    def test_invalid_snapshot_mode_is_rejected(self):
        with pytest.raises(ValidationError, match="snapshot_mode"):
            _ = config_from_env({"SNAPSHOTMODE": "sometimes"})

    def test_snapshot_mode_is_case_insensitive(self):
        cfg = config_from_env({"SNAPSHOTMODE": " Interval "})

        assert cfg.snapshot_mode is SnapshotMode.INTERVAL

    def test_invalid_port_is_rejected(self):
        with pytest.raises(ValidationError):
            _ = config_from_env({"MQTTPORT": "not-a-port"})


class TestSnapshotMode:
    """Tests for SnapshotMode flags"""

    @pytest.mark.parametrize(
        ("mode", "on_motion", "on_interval"),
        [
            (SnapshotMode.DISABLED, False, False),
            (SnapshotMode.MOTION, True, False),
            (SnapshotMode.INTERVAL, False, True),
            (SnapshotMode.ALL, True, True),
        ],
    )
    def test_flags(self, mode, on_motion, on_interval):
        assert mode.on_motion is on_motion
        assert mode.on_interval is on_interval


class TestLoadConfig:
    """Tests for load_config"""

    def test_yaml_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "host: mqtt.example\nenable_cameras: yes\nlocation_ids:\n  - loc9\nsnapshot_mode: all\n",
            encoding="utf-8",
        )

        cfg = load_config(config_file)

        assert cfg.host == "mqtt.example"
        assert cfg.enable_cameras is True
        assert cfg.location_ids == ["loc9"]
        assert cfg.snapshot_mode is SnapshotMode.ALL

    def test_json_file(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"port": 1884, "ring_topic": "ring2"}), encoding="utf-8")

        cfg = load_config(config_file)

        assert cfg.port == 1884
        assert cfg.ring_topic == "ring2"

    def test_missing_file_uses_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MQTTHOST", "from-env")

        cfg = load_config(tmp_path / "missing.yaml")

        assert cfg.host == "from-env"

    def test_non_mapping_file_uses_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MQTTPORT", "1999")
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n", encoding="utf-8")

        cfg = load_config(config_file)

        assert cfg.port == 1999

    def test_empty_strings_become_none(self):
        cfg = BridgeConfig(mqtt_user="", ring_token="", provider="")

        assert cfg.mqtt_user is None
        assert cfg.ring_token is None
        assert cfg.provider is None
