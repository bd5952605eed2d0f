"""pyserial-backed frame source.

Frames are newline-terminated records; decoding the scanner payload is left
to consumers, the acquisition core only looks at the record length.

A stock RPLidar streams binary scan packets only after it receives a
start-scan request, and those packets are not newline framed. This driver
expects a device or bridge firmware that emits one text record per scan.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import serial

from lidar_logger.core.cancellation import CancelToken
from lidar_logger.core.logging_utils import get_module_logger
from .types import DeviceDescriptor, Frame

logger = get_module_logger("SerialDevice")

DEFAULT_BAUDRATE = 115200
DEFAULT_TIMEOUT = 1.0


class SerialFrameDevice:
    def __init__(
        self,
        descriptor: DeviceDescriptor,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.descriptor = descriptor
        self.baudrate = baudrate
        self.timeout = timeout
        self._serial: Optional[serial.Serial] = None

    @property
    def port(self) -> str:
        return self.descriptor.path

    @property
    def is_open(self) -> bool:
        return bool(self._serial and self._serial.is_open)

    async def start(self) -> None:
        if self.is_open:
            return

        logger.info("Opening %s at %d baud", self.port, self.baudrate)
        self._serial = await asyncio.to_thread(
            serial.Serial,
            port=self.port,
            baudrate=self.baudrate,
            timeout=self.timeout,
        )

        # Drop whatever the device buffered before we attached
        await asyncio.to_thread(self._serial.reset_input_buffer)
        await asyncio.to_thread(self._serial.reset_output_buffer)
        logger.info("Opened %s", self.port)

    async def next_frame(self, token: CancelToken) -> Frame:
        """Block until one record arrives or ``token`` fires.

        Read timeouts only bound each attempt; an empty read is retried.
        """
        if not self.is_open:
            raise serial.SerialException(f"{self.port} is not open")

        while True:
            if token.cancelled:
                raise token.error()
            line = await asyncio.to_thread(self._serial.readline)
            if line:
                payload = line.rstrip(b"\r\n")
                return Frame(size=len(payload), payload=payload)

    async def close(self) -> None:
        if self._serial is None:
            return
        port = self._serial
        self._serial = None
        if port.is_open:
            # A cancelled fetch may leave a worker thread blocked in readline
            port.cancel_read()
            await asyncio.to_thread(port.close)
            logger.debug("Closed %s", self.port)


__all__ = ["DEFAULT_BAUDRATE", "DEFAULT_TIMEOUT", "SerialFrameDevice"]
