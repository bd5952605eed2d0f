"""Top-level package for the lidar logger."""

from __future__ import annotations

import asyncio
from importlib import metadata
from typing import Optional, Sequence

from .main import main

try:
    __version__ = metadata.version("lidar-logger")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


def run(argv: Optional[Sequence[str]] = None) -> None:
    """Convenience wrapper that runs the async entry point and exits with its status."""
    raise SystemExit(asyncio.run(main(list(argv) if argv is not None else None)))


__all__ = ["__version__", "main", "run"]
