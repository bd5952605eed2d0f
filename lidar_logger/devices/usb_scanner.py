"""
USB enumeration and identifier matching.

Discovery is a single point-in-time snapshot: there is no polling and no
retry. When several identical devices are attached the first one in
enumeration order is used.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Iterable, Optional, Sequence

import serial.tools.list_ports

from lidar_logger.core.errors import DeviceNotFound
from lidar_logger.core.logging_utils import LoggerLike, ensure_structured_logger, get_module_logger
from .types import DeviceDescriptor, HardwareIdentifier

logger = get_module_logger("USBScanner")

EnumerateFn = Callable[[], Sequence[DeviceDescriptor]]


def enumerate_usb_devices() -> list[DeviceDescriptor]:
    """Return the serial USB devices currently attached."""
    devices: list[DeviceDescriptor] = []
    for port_info in serial.tools.list_ports.comports():
        # Skip built-in UARTs and anything else without a VID/PID
        if port_info.vid is None or port_info.pid is None:
            continue
        devices.append(
            DeviceDescriptor(
                path=port_info.device,
                vendor_id=port_info.vid,
                product_id=port_info.pid,
                serial_number=port_info.serial_number,
                description=port_info.description or "",
            )
        )
    return devices


async def enumerate_usb_devices_async() -> list[DeviceDescriptor]:
    # comports() touches sysfs / the registry, keep it off the loop
    return await asyncio.to_thread(enumerate_usb_devices)


def match_devices(
    devices: Iterable[DeviceDescriptor],
    identifier: HardwareIdentifier,
) -> list[DeviceDescriptor]:
    """Return the devices whose vendor/product pair equals ``identifier``, in order."""
    return [device for device in devices if device.matches(identifier)]


async def discover(
    identifier: HardwareIdentifier,
    enumerate_devices: Optional[EnumerateFn] = None,
    logger_instance: LoggerLike = None,
) -> DeviceDescriptor:
    """Enumerate attached hardware and select the first match.

    Raises:
        DeviceNotFound: no attached device carries ``identifier``.
    """
    log = ensure_structured_logger(logger_instance, fallback_name="USBScanner")

    if enumerate_devices is None:
        devices = await enumerate_usb_devices_async()
    else:
        devices = await asyncio.to_thread(enumerate_devices)

    matches = match_devices(devices, identifier)
    if not matches:
        log.error("No USB devices found for %s (%d enumerated)", identifier, len(devices))
        raise DeviceNotFound(f"no usb devices found matching {identifier}")

    log.debug("Detected %d lidar devices", len(matches))
    for device in matches:
        log.debug("  %s (%s)", device.path, device.description or "no description")
    if len(matches) > 1:
        log.info("Multiple matching devices attached; using first: %s", matches[0].path)
    return matches[0]


__all__ = [
    "EnumerateFn",
    "discover",
    "enumerate_usb_devices",
    "enumerate_usb_devices_async",
    "match_devices",
]
