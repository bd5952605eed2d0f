"""
Device lifecycle host.

The host constructs, owns and destroys the running device component. The
acquisition supervisor only ever sees the handle returned by ``bring_up``
and hands it back through ``tear_down``; it never opens or closes the
underlying resource itself.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, runtime_checkable

from lidar_logger.core.cancellation import CancelToken
from lidar_logger.core.errors import InitializationFailed, TeardownFailed
from lidar_logger.core.logging_utils import get_module_logger
from .serial_device import SerialFrameDevice
from .types import DeviceDescriptor, DeviceType, Frame

logger = get_module_logger("DeviceHost")


@runtime_checkable
class DeviceHandle(Protocol):
    """Capability surface reached through the host."""

    async def next_frame(self, token: CancelToken) -> Frame:
        ...


class LifecycleHost(Protocol):
    async def bring_up(self, device_type: DeviceType, descriptor: DeviceDescriptor) -> DeviceHandle:
        ...

    async def tear_down(self, handle: DeviceHandle) -> None:
        ...


class ManagedDevice(DeviceHandle, Protocol):
    """What a driver must provide to be hosted by ``ComponentHost``."""

    async def start(self) -> None:
        ...

    async def close(self) -> None:
        ...


DriverFactory = Callable[[DeviceDescriptor], ManagedDevice]


class ComponentHost:
    """
    Lifecycle host for a single device component.

    Usage:
        host = ComponentHost()
        host.register(DeviceType.RPLIDAR, SerialFrameDevice)
        handle = await host.bring_up(DeviceType.RPLIDAR, descriptor)
        ...
        await host.tear_down(handle)
    """

    def __init__(self, factories: Optional[dict[DeviceType, DriverFactory]] = None):
        self._factories: dict[DeviceType, DriverFactory] = dict(factories or {})
        self._live: Optional[ManagedDevice] = None
        self._live_descriptor: Optional[DeviceDescriptor] = None

    def register(self, device_type: DeviceType, factory: DriverFactory) -> None:
        self._factories[device_type] = factory

    @property
    def live_handle(self) -> Optional[ManagedDevice]:
        return self._live

    async def bring_up(self, device_type: DeviceType, descriptor: DeviceDescriptor) -> ManagedDevice:
        if self._live is not None:
            raise InitializationFailed(
                f"a device is already live on {self._live_descriptor.path}"
            )

        factory = self._factories.get(device_type)
        if factory is None:
            raise InitializationFailed(f"no driver registered for {device_type.value}")

        logger.info("Bringing up %s on %s", device_type.value, descriptor.path)
        try:
            device = factory(descriptor)
        except Exception as exc:
            logger.error("Failed to construct %s driver: %s", device_type.value, exc)
            raise InitializationFailed(
                f"failed to construct {device_type.value} driver for {descriptor.path}: {exc}"
            ) from exc

        try:
            await device.start()
        except BaseException as exc:
            if isinstance(exc, Exception):
                logger.error("Failed to bring up %s on %s: %s", device_type.value, descriptor.path, exc)
            else:
                logger.warning("Bring-up of %s on %s interrupted", device_type.value, descriptor.path)
            try:
                await device.close()
            except Exception as close_exc:
                logger.warning("Cleanup after failed start also failed: %s", close_exc)
            if not isinstance(exc, Exception):
                raise
            raise InitializationFailed(
                f"failed to bring up {device_type.value} on {descriptor.path}: {exc}"
            ) from exc

        self._live = device
        self._live_descriptor = descriptor
        return device

    async def tear_down(self, handle: DeviceHandle) -> None:
        if handle is not self._live:
            raise TeardownFailed("handle is not owned by this host")

        device, descriptor = self._live, self._live_descriptor
        self._live = None
        self._live_descriptor = None

        try:
            await device.close()
        except Exception as exc:
            logger.error("Error tearing down %s: %s", descriptor.path, exc)
            raise TeardownFailed(f"failed to close {descriptor.path}: {exc}") from exc
        logger.info("Device on %s torn down", descriptor.path)


def default_host(**driver_options: Any) -> ComponentHost:
    """Host with the serial frame driver registered for the RPLidar."""

    def _serial_factory(descriptor: DeviceDescriptor) -> SerialFrameDevice:
        return SerialFrameDevice(descriptor, **driver_options)

    return ComponentHost({DeviceType.RPLIDAR: _serial_factory})


__all__ = [
    "ComponentHost",
    "DeviceHandle",
    "DriverFactory",
    "LifecycleHost",
    "ManagedDevice",
    "default_host",
]
