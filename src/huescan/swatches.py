"""
Swatch service: the cache gate in front of color discovery.

``fetch_swatches`` answers from the cache when a complete collection exists
for the requested saturation/lightness, and otherwise runs discovery,
keeping the streamed colors sorted by hue and caching the final collection.
A newer request for the same key cancels the older one.
"""

from __future__ import annotations

import bisect
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from .cache import DiskCache, SwatchCache, swatches_key
from .concurrency import CancellationToken
from .config import DEFAULT_CONFIG, Config
from .discovery import ColorDiscovery
from .errors import CancellationError, HueScanError, StorageError
from .interfaces import ColorPoint, SwatchResult, SwatchStats
from .logging.logger import LoggerProtocol, LogLevel
from .logging_utils import EventLogger, build_logger
from .metrics import Metrics
from .oracle import ColorOracle

logger = logging.getLogger(__name__)

OnSwatch = Callable[[ColorPoint, Tuple[ColorPoint, ...]], None]


def insert_sorted(swatches: List[ColorPoint], swatch: ColorPoint) -> int:
    """Insert ``swatch`` at its hue position and return the index used."""
    index = bisect.bisect_right(swatches, swatch.hue, key=lambda item: item.hue)
    swatches.insert(index, swatch)
    return index


class Notifier(Protocol):
    def notify(self, message: str, color: str = "success") -> None: ...

    def notify_success(self, message: str) -> None: ...

    def notify_error(self, message: str) -> None: ...


class LoggingNotifier:
    """Routes user-facing notifications to a logger."""

    def __init__(self, sink: LoggerProtocol | None = None) -> None:
        self.sink = sink

    def notify(self, message: str, color: str = "success") -> None:
        level = LogLevel.ERROR if color == "error" else LogLevel.INFO
        if self.sink is not None:
            self.sink.log(message, level)
        else:
            logger.log(int(level), message)

    def notify_success(self, message: str) -> None:
        self.notify(message, "success")

    def notify_error(self, message: str) -> None:
        self.notify(message, "error")


class SwatchService:
    """Cache-aware entry point for swatch requests."""

    def __init__(
        self,
        discovery: ColorDiscovery,
        cache: SwatchCache | None = None,
        notifier: Notifier | None = None,
        event_logger: EventLogger | None = None,
        metrics: Metrics | None = None,
    ) -> None:
        self.discovery = discovery
        self.cache: SwatchCache = cache if cache is not None else DiskCache(discovery.config.cache_path)
        self.notifier: Notifier = notifier or LoggingNotifier(discovery.logger)
        self.event_logger = event_logger
        self.metrics = metrics or discovery.metrics
        self._inflight: Dict[str, CancellationToken] = {}

    @classmethod
    def from_config(
        cls,
        oracle: ColorOracle,
        config: Config | None = None,
        *,
        notifier: Notifier | None = None,
        metrics: Metrics | None = None,
        logger: LoggerProtocol | None = None,
    ) -> "SwatchService":
        """Service with a ``DiskCache`` at ``config.cache_path`` and events under ``config.log_path``."""
        config = config or DEFAULT_CONFIG
        discovery = ColorDiscovery(oracle, config=config, metrics=metrics, logger=logger)
        return cls(
            discovery,
            DiskCache(config.cache_path),
            notifier=notifier,
            event_logger=build_logger(config.log_path, "swatches"),
        )

    @property
    def in_flight(self) -> List[str]:
        """Cache keys with a request currently running."""
        return list(self._inflight)

    async def fetch_swatches(
        self,
        saturation: Optional[int] = None,
        lightness: Optional[int] = None,
        on_swatch: Optional[OnSwatch] = None,
    ) -> SwatchResult:
        """
        Return every named color for ``(saturation, lightness)``.

        ``on_swatch(color, swatches)`` is called for each color as discovery
        finds it, with the hue-sorted collection so far; it is not called for
        cache hits. Cancellation yields ``cancelled=True``, oracle failures
        yield ``error`` plus a notification; both keep the partial collection
        and leave the cache untouched.
        """
        config = self.discovery.config
        if saturation is None:
            saturation = config.default_saturation
        if lightness is None:
            lightness = config.default_lightness
        key = swatches_key(saturation, lightness)

        previous = self._inflight.get(key)
        if previous is not None:
            previous.cancel(f"Superseded by a newer request for {key}")
        token = CancellationToken()
        self._inflight[key] = token

        swatches: List[ColorPoint] = []
        try:
            cached = await self._read_cache(key)
            if token.cancelled:
                return SwatchResult(saturation, lightness, stats=SwatchStats(0, False), cancelled=True)
            if cached is not None:
                await self._emit("cache_hit", key=key, total=len(cached))
                return SwatchResult(saturation, lightness, swatches=tuple(cached), stats=SwatchStats(len(cached), True))

            def _on_color(point: ColorPoint) -> None:
                insert_sorted(swatches, point)
                if on_swatch is not None:
                    on_swatch(point, tuple(swatches))

            await self._emit("discovery_start", key=key)
            try:
                await self.discovery.discover(saturation, lightness, _on_color, token)
            except CancellationError as exc:
                await self._emit("discovery_cancelled", key=key, found=len(swatches), reason=str(exc))
                return SwatchResult(
                    saturation,
                    lightness,
                    swatches=tuple(swatches),
                    stats=SwatchStats(len(swatches), False),
                    cancelled=True,
                )
            except HueScanError as exc:
                message = f"Failed to fetch swatches: {exc}"
                self.notifier.notify_error(message)
                await self._emit("discovery_failed", key=key, found=len(swatches), error=str(exc))
                return SwatchResult(
                    saturation,
                    lightness,
                    swatches=tuple(swatches),
                    stats=SwatchStats(len(swatches), False),
                    error=message,
                )

            await self._write_cache(key, swatches)
            await self._emit("discovery_done", key=key, total=len(swatches))
            return SwatchResult(saturation, lightness, swatches=tuple(swatches), stats=SwatchStats(len(swatches), False))
        finally:
            if self._inflight.get(key) is token:
                del self._inflight[key]

    def cancel(self, saturation: int, lightness: int) -> bool:
        """Cancel the in-flight request for one key; returns whether one existed."""
        token = self._inflight.get(swatches_key(saturation, lightness))
        if token is None:
            return False
        token.cancel("Cancelled by caller")
        return True

    def cleanup(self) -> None:
        """Cancel every in-flight request."""
        for token in list(self._inflight.values()):
            token.cancel("Cancelled by caller")

    async def _read_cache(self, key: str) -> Optional[List[ColorPoint]]:
        try:
            cached = await self.cache.get(key)
        except StorageError as exc:
            self.metrics.record_storage_error()
            logger.warning("Cache read failed for %s, treating as miss: %s", key, exc)
            cached = None
        self.metrics.record_cache_lookup(hit=cached is not None)
        return cached

    async def _write_cache(self, key: str, swatches: Sequence[ColorPoint]) -> None:
        try:
            await self.cache.set(key, list(swatches))
        except StorageError as exc:
            self.metrics.record_storage_error()
            logger.warning("Cache write failed for %s, result not persisted: %s", key, exc)
            return
        self.metrics.record_cache_write()

    async def _emit(self, event: str, **payload: Any) -> None:
        if self.event_logger is None:
            return
        try:
            await self.event_logger.log(event, payload)
        except OSError as exc:
            logger.warning("Event log write failed for %s: %s", event, exc)
