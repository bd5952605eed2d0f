"""Core building blocks shared by the acquisition stack."""

from .cancellation import CancelToken
from .errors import (
    AcquisitionCancelled,
    AcquisitionFailed,
    CombinedError,
    ConfigError,
    DeviceNotFound,
    InitializationFailed,
    LidarLoggerError,
    TeardownFailed,
    combine_errors,
    error_list,
    has_error,
)
from .logging_utils import StructuredLogger, ensure_structured_logger, get_module_logger

__all__ = [
    "AcquisitionCancelled",
    "AcquisitionFailed",
    "CancelToken",
    "CombinedError",
    "ConfigError",
    "DeviceNotFound",
    "InitializationFailed",
    "LidarLoggerError",
    "StructuredLogger",
    "TeardownFailed",
    "combine_errors",
    "ensure_structured_logger",
    "error_list",
    "get_module_logger",
    "has_error",
]
