"""Unit tests for configuration defaults, resolution and file loading."""

import logging
from pathlib import Path

import pytest

from lidar_logger.core.config import (
    CONFIG_DEFAULTS,
    AcquisitionConfig,
    ConfigLoader,
    FILE_DEFAULTS,
    config_from_mapping,
    load_config_file,
    resolve_config,
)
from lidar_logger.core.errors import ConfigError
from lidar_logger.devices.types import RPLIDAR_USB, HardwareIdentifier


class TestResolveConfig:
    """Tests for resolve_config()."""

    def test_zero_fields_get_defaults(self):
        resolved = resolve_config(AcquisitionConfig())

        assert resolved.poll_interval_ms == CONFIG_DEFAULTS["poll_interval_ms"] == 10
        assert resolved.port == CONFIG_DEFAULTS["port"] == 8081
        assert resolved.settle_interval_ms == CONFIG_DEFAULTS["settle_interval_ms"] == 1000
        assert resolved.device_path is None

    def test_zero_poll_interval_same_as_default(self):
        explicit = resolve_config(AcquisitionConfig(poll_interval_ms=10))
        implicit = resolve_config(AcquisitionConfig(poll_interval_ms=0))
        assert explicit == implicit

    def test_user_values_unchanged(self):
        config = AcquisitionConfig(poll_interval_ms=25, port=9000, settle_interval_ms=50, device_path="/dev/ttyUSB3")
        assert resolve_config(config) == config

    def test_idempotent(self):
        once = resolve_config(AcquisitionConfig(port=9000))
        assert resolve_config(once) == once

    def test_input_not_mutated(self):
        config = AcquisitionConfig()
        resolve_config(config)
        assert config.poll_interval_ms == 0

    def test_blank_device_path_is_unset(self):
        assert resolve_config(AcquisitionConfig(device_path="  ")).device_path is None

    def test_logs_default_and_user_defined(self, caplog):
        caplog.set_level(logging.DEBUG, logger="lidar_logger")

        resolve_config(AcquisitionConfig(poll_interval_ms=20))

        messages = [record.getMessage() for record in caplog.records]
        assert any("using user defined poll_interval_ms 20" in m for m in messages)
        assert any("using default port 8081" in m for m in messages)

    @pytest.mark.parametrize(
        "config",
        [
            AcquisitionConfig(poll_interval_ms=-1),
            AcquisitionConfig(settle_interval_ms=-5),
            AcquisitionConfig(port=-1),
            AcquisitionConfig(port=65536),
        ],
    )
    def test_out_of_range_rejected(self, config):
        with pytest.raises(ConfigError):
            resolve_config(config)

    def test_defaults_table_is_read_only(self):
        with pytest.raises(TypeError):
            CONFIG_DEFAULTS["port"] = 1

    def test_interval_properties(self):
        config = AcquisitionConfig(poll_interval_ms=250, settle_interval_ms=1500)
        assert config.poll_interval == pytest.approx(0.25)
        assert config.settle_interval == pytest.approx(1.5)


class TestConfigLoader:
    """Tests for ConfigLoader.load()."""

    def test_missing_file_returns_defaults(self, tmp_path):
        values = ConfigLoader.load(tmp_path / "missing.txt", FILE_DEFAULTS)
        assert values == dict(FILE_DEFAULTS)

    def test_parses_typed_values(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text(
            "# lidar settings\n"
            "\n"
            "poll_interval_ms = 50\n"
            "port=9090  # inline comment\n"
            "vendor_id = 0x1A86\n"
            "device_path = /dev/ttyUSB1\n"
        )

        values = ConfigLoader.load(path, FILE_DEFAULTS)

        assert values["poll_interval_ms"] == 50
        assert values["port"] == 9090
        assert values["vendor_id"] == 0x1A86
        assert values["device_path"] == "/dev/ttyUSB1"
        assert values["product_id"] == RPLIDAR_USB.product_id

    def test_skips_malformed_and_unknown_lines(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text("not a setting\nbogus = 1\nport = 7000\n")

        values = ConfigLoader.load(path, FILE_DEFAULTS)

        assert "bogus" not in values
        assert values["port"] == 7000

    def test_bad_integer_raises(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text("port = eighty\n")

        with pytest.raises(ConfigError, match="port"):
            ConfigLoader.load(path, FILE_DEFAULTS)

    def test_load_config_file_without_path(self):
        assert load_config_file(None) == dict(FILE_DEFAULTS)


class TestConfigFromMapping:
    """Tests for config_from_mapping()."""

    def test_defaults(self):
        config, identifier = config_from_mapping(FILE_DEFAULTS)

        assert config == AcquisitionConfig()
        assert identifier == RPLIDAR_USB

    def test_overrides(self):
        values = dict(FILE_DEFAULTS, port=1234, device_path="/dev/ttyACM0", vendor_id=1, product_id=2)

        config, identifier = config_from_mapping(values)

        assert config.port == 1234
        assert config.device_path == "/dev/ttyACM0"
        assert identifier == HardwareIdentifier(1, 2)
