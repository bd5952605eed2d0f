"""Error taxonomy and the error combinator used at every stop point."""

from __future__ import annotations

from typing import Optional


class LidarLoggerError(Exception):
    """Base class for all lidar logger failures."""


class ConfigError(LidarLoggerError, ValueError):
    """Configuration value outside its allowed range or unreadable config file."""


class DeviceNotFound(LidarLoggerError):
    """Discovery yielded zero matching devices."""


class InitializationFailed(LidarLoggerError):
    """The lifecycle host could not bring the device up."""


class AcquisitionFailed(LidarLoggerError):
    """A frame fetch failed mid-loop."""


class AcquisitionCancelled(LidarLoggerError):
    """Cancellation was observed during settling or polling."""

    def __init__(self, reason: str = "cancelled") -> None:
        super().__init__(reason)
        self.reason = reason


class TeardownFailed(LidarLoggerError):
    """The lifecycle host reported an error while tearing the device down."""


class CombinedError(LidarLoggerError):
    """Several independent failures reported as one outcome.

    Causes keep their order; ``str()`` lists every one of them.
    """

    def __init__(self, errors: tuple[BaseException, ...]) -> None:
        self.errors = tuple(errors)
        super().__init__("; ".join(_describe(err) for err in self.errors))

    def contains(self, exc_type: type[BaseException]) -> bool:
        return any(isinstance(err, exc_type) for err in self.errors)

    def __iter__(self):
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)


def _describe(error: BaseException) -> str:
    text = str(error)
    return f"{type(error).__name__}: {text}" if text else type(error).__name__


def combine_errors(*errors: Optional[BaseException]) -> Optional[BaseException]:
    """Merge errors into one value, dropping ``None`` and keeping every cause.

    Nested ``CombinedError`` values are flattened and the same exception
    object is only kept once. Returns ``None`` when nothing failed and the
    error itself when exactly one did.
    """
    collected: list[BaseException] = []
    for error in errors:
        for cause in error_list(error):
            if not any(cause is seen for seen in collected):
                collected.append(cause)

    if not collected:
        return None
    if len(collected) == 1:
        return collected[0]
    return CombinedError(tuple(collected))


def error_list(error: Optional[BaseException]) -> list[BaseException]:
    """Return every cause contained in ``error``."""
    if error is None:
        return []
    if isinstance(error, CombinedError):
        return list(error.errors)
    return [error]


def has_error(error: Optional[BaseException], exc_type: type[BaseException]) -> bool:
    return any(isinstance(cause, exc_type) for cause in error_list(error))


__all__ = [
    "AcquisitionCancelled",
    "AcquisitionFailed",
    "CombinedError",
    "ConfigError",
    "DeviceNotFound",
    "InitializationFailed",
    "LidarLoggerError",
    "TeardownFailed",
    "combine_errors",
    "error_list",
    "has_error",
]
