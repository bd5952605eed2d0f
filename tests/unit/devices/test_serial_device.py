"""Unit tests for SerialFrameDevice with serial.Serial patched out."""

import logging

import pytest
import serial

from lidar_logger.core.cancellation import CancelToken
from lidar_logger.core.errors import AcquisitionCancelled
from lidar_logger.devices.serial_device import SerialFrameDevice
from lidar_logger.devices.types import DeviceDescriptor

DESCRIPTOR = DeviceDescriptor("/dev/ttyUSB0", 0x10C4, 0xEA60)


@pytest.mark.asyncio
async def test_start_opens_and_flushes(patch_serial):
    device = SerialFrameDevice(DESCRIPTOR, baudrate=115200, timeout=0.5)

    await device.start()

    patch_serial.assert_called_once_with(port="/dev/ttyUSB0", baudrate=115200, timeout=0.5)
    port = patch_serial.return_value
    port.reset_input_buffer.assert_called_once()
    port.reset_output_buffer.assert_called_once()
    assert device.is_open


@pytest.mark.asyncio
async def test_next_frame_retries_empty_reads(patch_serial):
    patch_serial.return_value.readline.side_effect = [b"", b"", b"A1B2C3\r\n"]
    device = SerialFrameDevice(DESCRIPTOR)
    await device.start()

    frame = await device.next_frame(CancelToken())

    assert frame.size == 6
    assert frame.payload == b"A1B2C3"
    assert patch_serial.return_value.readline.call_count == 3


@pytest.mark.asyncio
async def test_next_frame_honours_cancelled_token(patch_serial):
    device = SerialFrameDevice(DESCRIPTOR)
    await device.start()
    token = CancelToken()
    token.cancel("stop")

    with pytest.raises(AcquisitionCancelled):
        await device.next_frame(token)


@pytest.mark.asyncio
async def test_next_frame_requires_open_port():
    with pytest.raises(serial.SerialException):
        await SerialFrameDevice(DESCRIPTOR).next_frame(CancelToken())


@pytest.mark.asyncio
async def test_read_error_propagates(patch_serial):
    patch_serial.return_value.readline.side_effect = serial.SerialException("device reports readiness to read but returned no data")
    device = SerialFrameDevice(DESCRIPTOR)
    await device.start()

    with pytest.raises(serial.SerialException):
        await device.next_frame(CancelToken())


@pytest.mark.asyncio
async def test_close(patch_serial):
    device = SerialFrameDevice(DESCRIPTOR)
    await device.start()

    await device.close()
    await device.close()

    patch_serial.return_value.close.assert_called_once()
    assert not device.is_open


@pytest.mark.asyncio
async def test_close_interrupts_pending_read_first(patch_serial):
    device = SerialFrameDevice(DESCRIPTOR)
    await device.start()
    port = patch_serial.return_value
    port.reset_mock()

    await device.close()

    assert [name for name, _, _ in port.method_calls] == ["cancel_read", "close"]


@pytest.mark.asyncio
async def test_logs_under_component_name(patch_serial, caplog):
    caplog.set_level(logging.INFO, logger="lidar_logger")

    await SerialFrameDevice(DESCRIPTOR).start()

    assert caplog.records[0].getMessage() == "[SerialDevice] Opening /dev/ttyUSB0 at 115200 baud"
