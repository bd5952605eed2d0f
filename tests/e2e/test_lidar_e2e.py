"""End-to-end tests against an attached RPLidar.

All tests are marked with @pytest.mark.hardware and are skipped unless
pytest runs with --run-hardware.

Hardware Requirements:
    - RPLidar on a CP210x USB bridge (10C4:EA60)

Usage:
    pytest tests/e2e/ --run-hardware -v
"""

from __future__ import annotations

import pytest

from lidar_logger.devices import (
    RPLIDAR_USB,
    DeviceType,
    default_host,
    discover,
    enumerate_usb_devices,
    match_devices,
)


@pytest.fixture
def lidar_descriptor():
    """First attached lidar, skipping the test when none is plugged in."""
    matches = match_devices(enumerate_usb_devices(), RPLIDAR_USB)
    if not matches:
        pytest.skip("No RPLidar attached")
    return matches[0]


@pytest.mark.hardware
class TestLidarEndToEnd:
    """Discovery and lifecycle against real hardware."""

    @pytest.mark.asyncio
    async def test_discover_finds_lidar(self, lidar_descriptor):
        descriptor = await discover(RPLIDAR_USB)

        assert descriptor.path == lidar_descriptor.path
        assert descriptor.identifier == RPLIDAR_USB

    @pytest.mark.asyncio
    async def test_bring_up_and_tear_down(self, lidar_descriptor):
        host = default_host()

        handle = await host.bring_up(DeviceType.RPLIDAR, lidar_descriptor)
        assert handle.is_open

        await host.tear_down(handle)
        assert not handle.is_open
        assert host.live_handle is None
