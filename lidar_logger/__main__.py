"""Allow ``python -m lidar_logger`` to start an acquisition run."""

from __future__ import annotations

from . import run


if __name__ == "__main__":
    run()
