"""
Acquisition supervisor: discovery, bring-up, settle wait and the polling loop.

Everything runs sequentially on the caller's task. The only concurrency is
the cancellation token, which every blocking wait races against.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Optional

from lidar_logger.core.cancellation import CancelToken
from lidar_logger.core.config import AcquisitionConfig, resolve_config
from lidar_logger.core.errors import (
    AcquisitionCancelled,
    AcquisitionFailed,
    TeardownFailed,
    combine_errors,
)
from lidar_logger.core.logging_utils import LoggerLike, ensure_structured_logger
from lidar_logger.devices.host import DeviceHandle, LifecycleHost, default_host
from lidar_logger.devices.types import (
    KNOWN_IDENTIFIERS,
    DeviceDescriptor,
    DeviceType,
    HardwareIdentifier,
)
from lidar_logger.devices.usb_scanner import EnumerateFn, discover


class SupervisorState(Enum):
    DISCOVERING = "discovering"
    INITIALIZING = "initializing"
    SETTLING = "settling"
    POLLING = "polling"
    STOPPING = "stopping"
    TERMINATED = "terminated"


_STATE_ORDER = list(SupervisorState)


class AcquisitionSupervisor:
    """
    Drives one device from discovery to teardown.

    ``run()`` never returns normally: it raises the stop cause merged with
    the teardown outcome. Cancellation with a clean teardown surfaces as
    ``AcquisitionCancelled``.

    Usage:
        supervisor = AcquisitionSupervisor(config, RPLIDAR_USB, default_host())
        try:
            await supervisor.run()
        except AcquisitionCancelled:
            ...
    """

    def __init__(
        self,
        config: AcquisitionConfig,
        identifier: Optional[HardwareIdentifier],
        host: LifecycleHost,
        *,
        token: Optional[CancelToken] = None,
        device_type: DeviceType = DeviceType.RPLIDAR,
        enumerate_devices: Optional[EnumerateFn] = None,
        logger: LoggerLike = None,
    ):
        self.config = config
        self.identifier = identifier or KNOWN_IDENTIFIERS[device_type]
        self.host = host
        self.token = token or CancelToken()
        self.device_type = device_type
        self.logger = ensure_structured_logger(logger, fallback_name="AcquisitionSupervisor")

        self._enumerate_devices = enumerate_devices
        self._state = SupervisorState.DISCOVERING
        self._frames_acquired = 0
        self._descriptor: Optional[DeviceDescriptor] = None
        self._effective_config: Optional[AcquisitionConfig] = None
        self._started = False
        self._teardown_error: Optional[BaseException] = None

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def frames_acquired(self) -> int:
        return self._frames_acquired

    @property
    def descriptor(self) -> Optional[DeviceDescriptor]:
        return self._descriptor

    @property
    def effective_config(self) -> Optional[AcquisitionConfig]:
        return self._effective_config

    @property
    def teardown_error(self) -> Optional[BaseException]:
        """``TeardownFailed`` from the last teardown, if closing the device failed."""
        return self._teardown_error

    def _transition(self, new_state: SupervisorState) -> None:
        if _STATE_ORDER.index(new_state) <= _STATE_ORDER.index(self._state):
            raise RuntimeError(
                f"illegal transition {self._state.value} -> {new_state.value}"
            )
        self.logger.debug("State %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    async def shutdown(self, reason: str = "shutdown requested") -> None:
        self.token.cancel(reason)

    # ------------------------------------------------------------------
    # Run

    async def run(self) -> None:
        if self._started:
            raise RuntimeError("supervisor can only run once")
        self._started = True

        try:
            config = resolve_config(self.config, self.logger)
            self._effective_config = config
            self.logger.info(
                "Acquisition config: poll every %d ms, port %d, settle %d ms",
                config.poll_interval_ms, config.port, config.settle_interval_ms,
            )
            descriptor = await self._select_device(config)
            self._descriptor = descriptor

            self._transition(SupervisorState.INITIALIZING)
            handle = await self.host.bring_up(self.device_type, descriptor)
        except BaseException:
            self._state = SupervisorState.TERMINATED
            raise

        try:
            stop_cause = await self._settle_and_poll(handle, config)
        except asyncio.CancelledError:
            self._transition(SupervisorState.STOPPING)
            teardown_error = await self._tear_down(handle)
            # CancelledError propagates as-is; the failure stays on teardown_error
            if teardown_error is not None:
                self.logger.error("Teardown after task cancellation failed: %s", teardown_error)
            self._transition(SupervisorState.TERMINATED)
            raise

        self._transition(SupervisorState.STOPPING)
        teardown_error = await self._tear_down(handle)
        self._transition(SupervisorState.TERMINATED)

        outcome = combine_errors(stop_cause, teardown_error)
        self.logger.info(
            "Acquisition stopped after %d frames: %s", self._frames_acquired, outcome
        )
        raise outcome

    async def _select_device(self, config: AcquisitionConfig) -> DeviceDescriptor:
        if config.device_path:
            self.logger.info("Using device path override %s", config.device_path)
            return DeviceDescriptor(
                path=config.device_path,
                vendor_id=self.identifier.vendor_id,
                product_id=self.identifier.product_id,
            )

        descriptor = await discover(self.identifier, self._enumerate_devices, self.logger)
        self.logger.info("Selected device %s", descriptor.path)
        return descriptor

    async def _settle_and_poll(self, handle: DeviceHandle, config: AcquisitionConfig) -> BaseException:
        self._transition(SupervisorState.SETTLING)
        # Let the device finish its own startup before the first fetch
        if not await self.token.wait_or_timeout(config.settle_interval):
            self.logger.info("Cancelled while settling: %s", self.token.reason)
            return self.token.error()

        self._transition(SupervisorState.POLLING)
        return await self._poll(handle, config.poll_interval)

    async def _poll(self, handle: DeviceHandle, interval: float) -> BaseException:
        """Fetch frames until cancellation or the first fetch error."""
        while True:
            if not await self.token.wait_or_timeout(interval):
                return self.token.error()

            try:
                frame = await self.token.run_until_cancelled(handle.next_frame(self.token))
            except AcquisitionCancelled as exc:
                return exc
            except Exception as exc:
                self.logger.error("Frame fetch failed: %s", exc)
                error = AcquisitionFailed(f"frame fetch failed: {exc}")
                error.__cause__ = exc
                return error

            self._frames_acquired += 1
            self.logger.event("scanned", frame_size=frame.size)

    async def _tear_down(self, handle: DeviceHandle) -> Optional[BaseException]:
        try:
            await self.host.tear_down(handle)
        except TeardownFailed as exc:
            self._teardown_error = exc
        except Exception as exc:
            error = TeardownFailed(f"teardown failed: {exc}")
            error.__cause__ = exc
            self._teardown_error = error
        return self._teardown_error


async def run_acquisition(
    config: AcquisitionConfig,
    identifier: Optional[HardwareIdentifier],
    *,
    host: Optional[LifecycleHost] = None,
    token: Optional[CancelToken] = None,
    enumerate_devices: Optional[EnumerateFn] = None,
    logger: LoggerLike = None,
) -> None:
    """Run one acquisition session; always raises the merged stop outcome."""
    supervisor = AcquisitionSupervisor(
        config,
        identifier,
        host or default_host(),
        token=token,
        enumerate_devices=enumerate_devices,
        logger=logger,
    )
    await supervisor.run()


__all__ = [
    "AcquisitionSupervisor",
    "SupervisorState",
    "run_acquisition",
]
