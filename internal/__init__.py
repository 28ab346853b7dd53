from internal.errors import ConfigError, InputError, SimulatorError
from internal.logging import AsyncEventLog, LogLevel, StructuredLogger, get_logger

__all__ = [
    "SimulatorError",
    "ConfigError",
    "InputError",
    "AsyncEventLog",
    "LogLevel",
    "StructuredLogger",
    "get_logger",
]
