"""
Minimal logger abstraction used by huescan components.

Components accept anything with a ``log(message, level)`` method so callers
can route output to their own sinks; ``StdOutLogger`` is the default.
"""

from __future__ import annotations

import sys
import time
from enum import IntEnum
from typing import Protocol, TextIO, runtime_checkable


class LogLevel(IntEnum):
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @classmethod
    def parse(cls, value: "str | int | LogLevel") -> "LogLevel":
        """Accept ``"warning"``, ``30`` or ``LogLevel.WARNING`` alike."""
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None


@runtime_checkable
class LoggerProtocol(Protocol):
    def log(self, message: str, level: LogLevel = LogLevel.INFO) -> None: ...


class StdOutLogger:
    """Prints timestamped lines at or above ``min_level``."""

    def __init__(self, min_level: "str | int | LogLevel" = LogLevel.WARNING, stream: TextIO | None = None) -> None:
        self.min_level = LogLevel.parse(min_level)
        self._stream = stream

    def log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        if level < self.min_level:
            return
        stream = self._stream or sys.stdout
        ts = time.strftime("%H:%M:%S")
        print(f"[{ts}] [{level.name}] {message}", file=stream, flush=True)
