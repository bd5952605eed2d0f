"""
Device discovery and lifecycle.

Provides:
- Data types: HardwareIdentifier, DeviceDescriptor, Frame, DeviceType
- USB enumeration and identifier matching
- The lifecycle host that owns the running device component
"""

from .types import (
    DeviceDescriptor,
    DeviceType,
    Frame,
    HardwareIdentifier,
    KNOWN_IDENTIFIERS,
    RPLIDAR_USB,
)
from .usb_scanner import (
    discover,
    enumerate_usb_devices,
    enumerate_usb_devices_async,
    match_devices,
)
from .host import (
    ComponentHost,
    DeviceHandle,
    LifecycleHost,
    default_host,
)
from .serial_device import SerialFrameDevice

__all__ = [
    "ComponentHost",
    "DeviceDescriptor",
    "DeviceHandle",
    "DeviceType",
    "Frame",
    "HardwareIdentifier",
    "KNOWN_IDENTIFIERS",
    "LifecycleHost",
    "RPLIDAR_USB",
    "SerialFrameDevice",
    "default_host",
    "discover",
    "enumerate_usb_devices",
    "enumerate_usb_devices_async",
    "match_devices",
]
