"""Logging utilities for huescan."""

from huescan.logging.logger import LoggerProtocol, LogLevel, StdOutLogger

__all__ = [
    "LogLevel",
    "LoggerProtocol",
    "StdOutLogger",
]
