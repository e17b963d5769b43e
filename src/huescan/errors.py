"""
Error kinds raised by huescan.

Callers distinguish cancellations (silent) from oracle failures (surfaced to
the user) and storage failures (absorbed by the swatch service).
"""

from __future__ import annotations


class HueScanError(Exception):
    """Base class for all huescan errors."""


class CancellationError(HueScanError):
    """Raised when a discovery is aborted by its caller or a superseding request."""

    def __init__(self, message: str = "Discovery cancelled") -> None:
        super().__init__(message)


class OracleError(HueScanError):
    """Remote color lookup failed (network error, non-success status, bad payload)."""

    def __init__(self, message: str, *, status_code: int | None = None, hue: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.hue = hue


class StorageError(HueScanError):
    """Cache read or write failed."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key
