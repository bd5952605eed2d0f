"""Shared helpers for building the command-line entry point."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
from pathlib import Path
from typing import Any, Optional

from lidar_logger.core.logging_utils import DEFAULT_LOG_FORMAT


LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def configure_logging(
    level_name: str,
    log_file: Optional[Path] = None,
    *,
    fmt: str = DEFAULT_LOG_FORMAT,
    datefmt: str = "%H:%M:%S",
) -> None:
    """
    Configure root logging with optional file output.

    Args:
        level_name: Logging level (debug, info, warning, error, critical)
        log_file: Optional path to also write logs to
        fmt: Log message format
        datefmt: Date/time format
    """

    level = LOG_LEVELS.get(level_name.lower())
    if level is None:
        valid = ", ".join(sorted(LOG_LEVELS))
        raise ValueError(f"Invalid log level '{level_name}'. Choose from: {valid}")

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.setLevel(level)
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default="info",
        help="Logging verbosity",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path to also write logs to",
    )


def _number(value: str, typ: type, name: str, *, allow_zero: bool):
    try:
        parsed = int(value, 0) if typ is int else typ(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Value must be a {name}") from exc
    if parsed < 0 or (parsed == 0 and not allow_zero):
        raise argparse.ArgumentTypeError(
            "Value must be non-negative" if allow_zero else "Value must be positive"
        )
    return parsed


def non_negative_int(value: str) -> int:
    """Integer where 0 means "use the default"; accepts 0x prefixes."""
    return _number(value, int, "integer", allow_zero=True)


def positive_float(value: str) -> float:
    return _number(value, float, "number", allow_zero=False)


def install_signal_handlers(supervisor: Any, loop: asyncio.AbstractEventLoop) -> None:
    """Register SIGINT/SIGTERM handlers that cancel the supervisor's token."""

    token = supervisor.token

    def signal_handler(sig: signal.Signals) -> None:
        if not token.cancelled:
            token.cancel(f"signal {sig.name}")

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, signal_handler, sig)


__all__ = [
    "LOG_LEVELS",
    "add_logging_arguments",
    "configure_logging",
    "install_signal_handlers",
    "non_negative_int",
    "positive_float",
]
