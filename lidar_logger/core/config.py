"""Acquisition configuration: defaults table, resolution and file loading."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from lidar_logger.devices.types import RPLIDAR_USB, HardwareIdentifier
from .errors import ConfigError
from .logging_utils import LoggerLike, ensure_structured_logger, get_module_logger

logger = get_module_logger("Config")

# Consulted once per run by resolve_config(); a zero field means "unset"
CONFIG_DEFAULTS: Mapping[str, int] = MappingProxyType({
    "poll_interval_ms": 10,
    "port": 8081,
    "settle_interval_ms": 1000,
})

MIN_PORT = 1
MAX_PORT = 65535


@dataclass(frozen=True)
class AcquisitionConfig:
    poll_interval_ms: int = 0
    port: int = 0
    device_path: Optional[str] = None
    settle_interval_ms: int = 0

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def settle_interval(self) -> float:
        return self.settle_interval_ms / 1000.0


def resolve_config(config: AcquisitionConfig, logger_instance: LoggerLike = None) -> AcquisitionConfig:
    """Return ``config`` with every zero-valued field replaced by its default.

    Applying it twice gives the same result as applying it once.

    Raises:
        ConfigError: a resolved value is outside its allowed range.
    """
    log = ensure_structured_logger(logger_instance, fallback_name="Config")

    updates: Dict[str, Any] = {}
    for name, default in CONFIG_DEFAULTS.items():
        value = getattr(config, name)
        if value == 0:
            log.debug("using default %s %d", name, default)
            updates[name] = default
        else:
            log.debug("using user defined %s %d", name, value)

    if config.device_path is not None and not config.device_path.strip():
        updates["device_path"] = None
    elif config.device_path:
        log.debug("using device path override %s", config.device_path)

    resolved = replace(config, **updates) if updates else config
    _validate(resolved)
    return resolved


def _validate(config: AcquisitionConfig) -> None:
    if config.poll_interval_ms <= 0:
        raise ConfigError(f"poll_interval_ms must be positive, got {config.poll_interval_ms}")
    if config.settle_interval_ms <= 0:
        raise ConfigError(f"settle_interval_ms must be positive, got {config.settle_interval_ms}")
    if not MIN_PORT <= config.port <= MAX_PORT:
        raise ConfigError(f"port must be in [{MIN_PORT}, {MAX_PORT}], got {config.port}")


# ---------------------------------------------------------------------------
# key=value config files


FILE_DEFAULTS: Mapping[str, Any] = MappingProxyType({
    "poll_interval_ms": 0,
    "port": 0,
    "settle_interval_ms": 0,
    "device_path": "",
    "vendor_id": RPLIDAR_USB.vendor_id,
    "product_id": RPLIDAR_USB.product_id,
})


class ConfigLoader:
    """Loader for ``key = value`` config files.

    Blank lines and ``#`` comments are ignored. Values for known keys are
    typed from the defaults; integers accept ``0x`` prefixes.
    """

    @staticmethod
    def load(config_path: Path, defaults: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        config = dict(defaults) if defaults else {}

        if not config_path.exists():
            logger.debug("Config file not found at %s, using defaults", config_path)
            return config

        logger.debug("Loading config from: %s", config_path)
        try:
            text = config_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"cannot read config file {config_path}: {exc}") from exc

        for line_num, line in enumerate(text.splitlines(), 1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                logger.warning("Invalid config line %d (missing '='): %s", line_num, line)
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.split("#", 1)[0].strip()

            if defaults and key in defaults:
                config[key] = ConfigLoader._parse_value_with_type(key, value, type(defaults[key]))
            else:
                logger.warning("Unknown config key '%s' (line %d) - ignored", key, line_num)

        logger.info("Loaded config from %s", config_path)
        return config

    @staticmethod
    def _parse_value_with_type(key: str, value: str, target_type: type) -> Any:
        if target_type is int:
            try:
                return int(value, 0)
            except ValueError as exc:
                raise ConfigError(f"'{key}' expects an integer, got '{value}'") from exc
        return value


def config_from_mapping(values: Mapping[str, Any]) -> tuple[AcquisitionConfig, HardwareIdentifier]:
    """Build the acquisition config and identifier from loaded values."""
    known = {f.name for f in fields(AcquisitionConfig)}
    kwargs = {key: value for key, value in values.items() if key in known}
    if not kwargs.get("device_path"):
        kwargs["device_path"] = None

    identifier = HardwareIdentifier(
        vendor_id=int(values.get("vendor_id", RPLIDAR_USB.vendor_id)),
        product_id=int(values.get("product_id", RPLIDAR_USB.product_id)),
    )
    return AcquisitionConfig(**kwargs), identifier


def load_config_file(config_path: Optional[Path]) -> Dict[str, Any]:
    if config_path is None:
        return dict(FILE_DEFAULTS)
    return ConfigLoader.load(config_path, FILE_DEFAULTS)


__all__ = [
    "AcquisitionConfig",
    "CONFIG_DEFAULTS",
    "ConfigLoader",
    "FILE_DEFAULTS",
    "config_from_mapping",
    "load_config_file",
    "resolve_config",
]
