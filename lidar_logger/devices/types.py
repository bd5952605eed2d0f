"""
Core type definitions for device discovery and acquisition.

Identifiers and descriptors are frozen so a discovered device cannot be
altered once it has been selected.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class DeviceType(Enum):
    """Device type tags understood by the lifecycle host."""
    RPLIDAR = "rplidar"


@dataclass(frozen=True)
class HardwareIdentifier:
    """USB vendor/product pair that makes a device eligible."""
    vendor_id: int
    product_id: int

    def __str__(self) -> str:
        return f"{self.vendor_id:04X}:{self.product_id:04X}"


@dataclass(frozen=True)
class DeviceDescriptor:
    """One enumerated piece of hardware."""
    path: str                           # e.g., "/dev/ttyUSB0"
    vendor_id: int
    product_id: int
    serial_number: Optional[str] = None
    description: str = ""

    @property
    def identifier(self) -> HardwareIdentifier:
        return HardwareIdentifier(self.vendor_id, self.product_id)

    def matches(self, identifier: HardwareIdentifier) -> bool:
        return (
            self.vendor_id == identifier.vendor_id
            and self.product_id == identifier.product_id
        )


@dataclass(frozen=True)
class Frame:
    """A single measurement frame. Only ``size`` is inspected by the core."""
    size: int
    payload: bytes = b""
    captured_at: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError(f"frame size must be >= 0, got {self.size}")


# Slamtec RPLidar units enumerate through a Silicon Labs CP210x bridge
RPLIDAR_USB = HardwareIdentifier(vendor_id=0x10C4, product_id=0xEA60)

KNOWN_IDENTIFIERS: Mapping[DeviceType, HardwareIdentifier] = MappingProxyType({
    DeviceType.RPLIDAR: RPLIDAR_USB,
})


__all__ = [
    "DeviceDescriptor",
    "DeviceType",
    "Frame",
    "HardwareIdentifier",
    "KNOWN_IDENTIFIERS",
    "RPLIDAR_USB",
]
