"""
Boundary discovery across the hue circle.

Finds every distinct color name for one saturation/lightness pair while
keeping oracle calls low:

1. Sample ``starting_samples`` evenly spaced hues from 0 to 359 concurrently.
2. Between each adjacent pair of samples with different names, bisect
   recursively, probing midpoints until the boundary is pinned to one degree.

All probes of one run share a single ``ConcurrencyLimiter`` and
``CancellationToken``. New names are streamed to ``on_color_found`` as soon as
they are seen; sampling-phase names arrive in ascending hue order, bisection
names in completion order.
"""

from __future__ import annotations

import asyncio
import math
import time
from typing import Any, Awaitable, Callable, Iterable, List

from .client import fetch_at
from .concurrency import CancellationToken, ConcurrencyLimiter
from .config import DEFAULT_CONFIG, MIN_STARTING_SAMPLES, Config
from .errors import CancellationError
from .interfaces import ColorPoint
from .logging.logger import LoggerProtocol, LogLevel, StdOutLogger
from .metrics import Metrics
from .oracle import ColorOracle

OnColorFound = Callable[[ColorPoint], None]

MAX_HUE = 359


def get_sample_hues(count: int) -> list[int]:
    """
    Evenly distributed sample hues from 0 to 359 inclusive.

    ``count`` below 3 is treated as 3. Rounds half up, so
    ``get_sample_hues(5) == [0, 90, 180, 269, 359]``.
    """
    if count < MIN_STARTING_SAMPLES:
        count = MIN_STARTING_SAMPLES
    return [math.floor(MAX_HUE * i / (count - 1) + 0.5) for i in range(count)]


async def _gather_all(aws: Iterable[Awaitable[Any]]) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.

    The first failure cancels the siblings still running and is re-raised
    once they have unwound.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class _DiscoveryRun:
    """State owned by a single ``discover`` invocation."""

    def __init__(
        self,
        saturation: int,
        lightness: int,
        on_color_found: OnColorFound,
        token: CancellationToken,
        oracle: ColorOracle,
        config: Config,
        metrics: Metrics,
    ) -> None:
        self.saturation = saturation
        self.lightness = lightness
        self.on_color_found = on_color_found
        self.token = token
        self.oracle = oracle
        self.config = config
        self.metrics = metrics
        self.limiter = ConcurrencyLimiter(config.concurrency_limit)
        self.found_names: set[str] = set()
        self.probes = 0

    async def execute(self) -> None:
        hues = get_sample_hues(self.config.starting_samples)
        samples: list[ColorPoint] = await _gather_all(self._probe(hue) for hue in hues)
        self.token.raise_if_cancelled()

        for point in samples:
            self._claim(point)

        await _gather_all(
            self._bisect(left, right)
            for left, right in zip(samples, samples[1:])
            if left.name != right.name
        )

    def _claim(self, point: ColorPoint) -> bool:
        # Check, insert and emit without yielding so concurrent branches cannot both emit a name
        if point.name in self.found_names:
            return False
        self.found_names.add(point.name)
        self.on_color_found(point)
        return True

    async def _probe(self, hue: int) -> ColorPoint:
        self.token.raise_if_cancelled()
        return await fetch_at(hue, self.saturation, self.lightness, self.limiter, self.token, self._call_oracle)

    async def _call_oracle(self, hue: int, saturation: int, lightness: int) -> ColorPoint:
        self.probes += 1
        self.metrics.record_concurrency(self.limiter.running)
        start = time.perf_counter()
        failed = False
        try:
            return await self.oracle(hue, saturation, lightness)
        except Exception:
            failed = True
            raise
        finally:
            # Aborted calls still went out, so they are counted too
            self.metrics.record_oracle_call(time.perf_counter() - start, failed=failed)

    async def _bisect(self, left: ColorPoint, right: ColorPoint) -> None:
        self.token.raise_if_cancelled()
        if right.hue - left.hue <= 1:
            return

        mid = await self._probe((left.hue + right.hue) // 2)
        self._claim(mid)

        branches = []
        if mid.name != left.name:
            branches.append(self._bisect(left, mid))
        if mid.name != right.name:
            branches.append(self._bisect(mid, right))
        await _gather_all(branches)


class ColorDiscovery:
    """Discovers all distinct color names for a saturation/lightness pair."""

    def __init__(
        self,
        oracle: ColorOracle,
        config: Config | None = None,
        metrics: Metrics | None = None,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self.oracle = oracle
        self.config = config or DEFAULT_CONFIG
        self.metrics = metrics or Metrics()
        self.logger: LoggerProtocol = logger or StdOutLogger(self.config.log_level)

    async def discover(
        self,
        saturation: int,
        lightness: int,
        on_color_found: OnColorFound,
        token: CancellationToken | None = None,
    ) -> None:
        """
        Stream every distinct color name for ``(saturation, lightness)``.

        Raises ``CancellationError`` if ``token`` is cancelled before or during
        the search, and propagates the first oracle failure. Colors already
        passed to ``on_color_found`` are not retracted.
        """
        token = token or CancellationToken()
        token.raise_if_cancelled()

        run = _DiscoveryRun(
            saturation,
            lightness,
            on_color_found,
            token,
            self.oracle,
            self.config,
            self.metrics,
        )
        self.metrics.record_discovery_start()
        start = time.perf_counter()
        outcome = "failed"
        try:
            await run.execute()
            outcome = "completed"
        except (CancellationError, asyncio.CancelledError):
            outcome = "cancelled"
            raise
        finally:
            elapsed = time.perf_counter() - start
            self.metrics.record_discovery_end(outcome, elapsed, len(run.found_names))
            level = LogLevel.WARNING if outcome == "failed" else LogLevel.INFO
            self.logger.log(
                f"Discovery s={saturation} l={lightness} {outcome}: "
                f"{len(run.found_names)} colors, {run.probes} oracle calls, "
                f"peak {run.limiter.max_observed} in flight, {elapsed:.2f}s",
                level,
            )


async def discover_colors(
    saturation: int,
    lightness: int,
    on_color_found: OnColorFound,
    token: CancellationToken | None = None,
    *,
    oracle: ColorOracle,
    config: Config | None = None,
) -> None:
    """Functional shortcut for ``ColorDiscovery(oracle, config).discover(...)``."""
    await ColorDiscovery(oracle, config).discover(saturation, lightness, on_color_found, token)
