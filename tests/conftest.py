"""Shared pytest configuration and fixtures for the lidar logger test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "hardware: mark test as requiring an attached lidar"
    )


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require physical hardware",
    )


def pytest_collection_modifyitems(config, items):
    """Skip hardware tests unless --run-hardware is specified."""
    if config.getoption("--run-hardware"):
        return

    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def fake_device():
    """A scripted device that returns frames until told otherwise."""
    from tests.infrastructure.mocks.device_mocks import FakeDevice
    return FakeDevice()


@pytest.fixture
def recording_host(fake_device):
    """A lifecycle host that hands out ``fake_device`` and counts calls."""
    from tests.infrastructure.mocks.device_mocks import RecordingHost
    return RecordingHost(fake_device)


@pytest.fixture
def fast_config():
    """Config with millisecond settle and poll intervals."""
    from lidar_logger.core.config import AcquisitionConfig
    return AcquisitionConfig(poll_interval_ms=1, settle_interval_ms=1)
