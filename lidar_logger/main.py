"""Command-line entry point: discover the lidar and log frames until stopped."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Optional, Sequence

from lidar_logger.acquisition import AcquisitionSupervisor
from lidar_logger.cli.common import (
    add_logging_arguments,
    configure_logging,
    install_signal_handlers,
    non_negative_int,
    positive_float,
)
from lidar_logger.core.cancellation import CancelToken
from lidar_logger.core.config import config_from_mapping, load_config_file
from lidar_logger.core.errors import AcquisitionCancelled, ConfigError, LidarLoggerError, error_list
from lidar_logger.core.logging_utils import get_module_logger
from lidar_logger.devices import HardwareIdentifier, default_host, enumerate_usb_devices

logger = get_module_logger("Main")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2

# CLI destination -> config file key
_OVERRIDES = {
    "poll_interval_ms": "poll_interval_ms",
    "port": "port",
    "device": "device_path",
    "settle_ms": "settle_interval_ms",
    "vendor_id": "vendor_id",
    "product_id": "product_id",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lidar-logger",
        description="Discover an attached lidar over USB and log every scanned frame.",
    )
    parser.add_argument(
        "poll_interval_ms",
        nargs="?",
        type=non_negative_int,
        default=None,
        help="Delay between frame fetches in milliseconds (0 = default 10)",
    )
    parser.add_argument(
        "port",
        nargs="?",
        type=non_negative_int,
        default=None,
        help="Listen port (0 = default 8081)",
    )
    parser.add_argument("--device", default=None, help="Device path; skips USB discovery")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional key=value config file; command-line values take precedence",
    )
    parser.add_argument(
        "--settle-ms",
        dest="settle_ms",
        type=non_negative_int,
        default=None,
        help="Wait after bring-up before the first fetch (0 = default 1000)",
    )
    parser.add_argument(
        "--duration",
        type=positive_float,
        default=None,
        help="Stop after this many seconds",
    )
    parser.add_argument("--vendor-id", dest="vendor_id", type=non_negative_int, default=None)
    parser.add_argument("--product-id", dest="product_id", type=non_negative_int, default=None)
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="Print attached USB serial devices and exit",
    )
    add_logging_arguments(parser)
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    # Options may sit between the two positionals
    return build_parser().parse_intermixed_args(list(argv) if argv is not None else None)


def resolve_settings(args: argparse.Namespace):
    values = load_config_file(args.config)
    for dest, key in _OVERRIDES.items():
        value = getattr(args, dest)
        if value is not None:
            values[key] = value
    return config_from_mapping(values)


def print_devices(identifier: HardwareIdentifier) -> None:
    devices = enumerate_usb_devices()
    if not devices:
        print("No USB serial devices found")
        return

    print(f"Found {len(devices)} USB serial device(s), looking for {identifier}:\n")
    for device in devices:
        marker = "*" if device.matches(identifier) else " "
        print(f" {marker} {device.path:<16} {device.identifier}  {device.description}")


async def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    try:
        config, identifier = resolve_settings(args)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG

    if args.list_devices:
        await asyncio.to_thread(print_devices, identifier)
        return EXIT_OK

    token = CancelToken()
    supervisor = AcquisitionSupervisor(
        config,
        identifier,
        default_host(),
        token=token,
        logger=logger.getChild("Supervisor"),
    )
    install_signal_handlers(supervisor, asyncio.get_running_loop())
    if args.duration:
        token.set_deadline(args.duration)

    try:
        await supervisor.run()
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG
    except LidarLoggerError as exc:
        causes = error_list(exc)
        if all(isinstance(cause, AcquisitionCancelled) for cause in causes):
            logger.info("Stopped: %s (%d frames)", exc, supervisor.frames_acquired)
            return EXIT_OK
        for cause in causes:
            logger.error("%s: %s", type(cause).__name__, cause)
        return EXIT_FAILURE
    finally:
        token.close()

    return EXIT_OK


__all__ = ["build_parser", "main", "parse_args", "resolve_settings"]
