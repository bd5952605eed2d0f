"""Unit test fixtures for isolated, fast test execution.

Unit tests never touch real hardware: serial ports are patched and the
lifecycle host is replaced by the doubles in tests/infrastructure/mocks.
"""

from __future__ import annotations

from typing import Generator
from unittest.mock import MagicMock, patch

import pytest


@pytest.fixture(scope="function")
def patch_serial() -> Generator[MagicMock, None, None]:
    """Patch serial.Serial for the duration of the test.

    Yields:
        The patched Serial class; ``return_value`` is the open port.

    Example:
        def test_reads(patch_serial):
            patch_serial.return_value.readline.return_value = b"frame\\n"
    """
    with patch("serial.Serial") as mock_serial:
        mock_serial.return_value.is_open = True
        mock_serial.return_value.readline.return_value = b""
        yield mock_serial
